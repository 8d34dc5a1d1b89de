import json
import os
from concurrent.futures import ThreadPoolExecutor

import gspread
from gspread.exceptions import APIError, GSpreadException
from gspread.utils import ValueRenderOption
from oauth2client.service_account import ServiceAccountCredentials

from models.grid import Grid
from models.metrics import log_sheet_loaded, log_rate_limit_error

# Workbook defaults
DEFAULT_SHEET_NAME = 'Operations Record'
DEFAULT_FETCH_WORKERS = 4

# Informational tabs that never hold ops
NON_OP_SHEETS = ('Operations Record', 'Awards Record')


class SheetFetchError(Exception):
    """Raised when the workbook or one of its worksheets can't be read"""
    def __init__(self, message="Unable to load the operations record from Google Sheets."):
        self.message = message
        super().__init__(self.message)


class RateLimitError(SheetFetchError):
    """Raised when Google Sheets API rate limit is hit"""
    def __init__(self, message="Google Sheets rate limit exceeded. Please wait a moment and try again."):
        super().__init__(message)


def get_non_op_sheets():
    """Titles to skip, from NON_OP_SHEETS env (comma separated) or the defaults"""
    configured = os.environ.get('NON_OP_SHEETS')
    if configured is None:
        return NON_OP_SHEETS
    return tuple(title.strip() for title in configured.split(',') if title.strip())


def get_fetch_workers():
    try:
        return max(1, int(os.environ.get('FETCH_WORKERS', DEFAULT_FETCH_WORKERS)))
    except ValueError:
        return DEFAULT_FETCH_WORKERS


def get_google_creds():
    """Get Google credentials either from file or environment variable"""
    scope = ['https://spreadsheets.google.com/feeds',
             'https://www.googleapis.com/auth/drive']

    if 'GOOGLE_SHEETS_CREDS' in os.environ:
        creds_dict = json.loads(os.environ['GOOGLE_SHEETS_CREDS'])
        return ServiceAccountCredentials.from_json_keyfile_dict(creds_dict, scope)
    else:
        return ServiceAccountCredentials.from_json_keyfile_name('client_secret.json', scope)


def get_spreadsheet():
    """Open the operations record, by SHEET_ID if set, otherwise by SHEET_NAME"""
    try:
        creds = get_google_creds()
        client = gspread.authorize(creds)
        sheet_id = os.environ.get('SHEET_ID')
        if sheet_id:
            spreadsheet = client.open_by_key(sheet_id)
        else:
            spreadsheet = client.open(os.environ.get('SHEET_NAME', DEFAULT_SHEET_NAME))
    except APIError as e:
        _raise_api_error(e)
    except (GSpreadException, OSError, ValueError) as e:
        raise SheetFetchError(f"Unable to open spreadsheet: {e}") from e
    print(f"[SHEETS] Loaded document: {spreadsheet.title}")
    return spreadsheet


def _raise_api_error(error, sheet_name=None):
    if error.response.status_code == 429:
        log_rate_limit_error(sheet_name)
        raise RateLimitError() from error
    target = f"'{sheet_name}'" if sheet_name else "spreadsheet"
    raise SheetFetchError(f"Google Sheets error reading {target}: {error}") from error


def worksheet_to_grid(worksheet):
    """Fetch a worksheet's cells into a Grid (raw values, so checkboxes stay bools)"""
    try:
        cells = worksheet.get_all_values(value_render_option=ValueRenderOption.unformatted)
    except APIError as e:
        _raise_api_error(e, worksheet.title)
    except (GSpreadException, OSError) as e:
        raise SheetFetchError(f"Unable to read '{worksheet.title}': {e}") from e
    grid = Grid(title=worksheet.title, cells=cells,
                hidden=bool(getattr(worksheet, 'isSheetHidden', False)))
    log_sheet_loaded(grid.title, grid.row_count, grid.column_count)
    return grid


def load_grids(spreadsheet, max_workers=None):
    """
    Fetch every worksheet in workbook order.
    Worksheets are independent, so they are fetched in parallel.
    """
    try:
        worksheets = spreadsheet.worksheets()
    except APIError as e:
        _raise_api_error(e)
    except (GSpreadException, OSError) as e:
        raise SheetFetchError(f"Unable to list worksheets: {e}") from e

    if not worksheets:
        return []

    workers = max_workers or get_fetch_workers()
    with ThreadPoolExecutor(max_workers=min(workers, len(worksheets))) as executor:
        return list(executor.map(worksheet_to_grid, worksheets))
