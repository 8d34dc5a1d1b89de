import unittest
from unittest.mock import patch, MagicMock

from requests.exceptions import ConnectionError as RequestsConnectionError

from opsrecord import app
from models import pipeline
from models.sheets import RateLimitError, SheetFetchError
from routes import report

from grid_builders import member_row, op_rows, make_grid


def sample_result():
    grids = [make_grid(f"Week{i}", op_rows('1900Z', [member_row('Maverick', deaths=0, bolters=1)]))
             for i in range(1, 6)]
    return pipeline.parse_grids(grids)


class TestReportRoutes(unittest.TestCase):
    """Tests for report route handlers"""

    def setUp(self):
        app.config['TESTING'] = True
        self.client = app.test_client()
        report.clear_result()

    def tearDown(self):
        report.clear_result()

    @patch('models.pipeline.run')
    def test_run_returns_summary(self, mock_run):
        mock_run.return_value = sample_result()

        response = self.client.post('/run')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['ops'], 5)
        self.assertEqual(response.get_json()['achievements'], 1)

    @patch('models.pipeline.run')
    def test_run_always_refreshes(self, mock_run):
        mock_run.return_value = sample_result()

        self.client.post('/run')
        self.client.post('/run')

        self.assertEqual(mock_run.call_count, 2)

    @patch('models.pipeline.run')
    def test_read_routes_share_cached_result(self, mock_run):
        mock_run.return_value = sample_result()

        self.client.get('/ops')
        self.client.get('/achievements')

        mock_run.assert_called_once_with()

    @patch('models.pipeline.run')
    def test_ops(self, mock_run):
        mock_run.return_value = sample_result()

        response = self.client.get('/ops')

        data = response.get_json()
        self.assertEqual([op['name'] for op in data], [f"Week{i} 1900Z" for i in range(1, 6)])

    @patch('models.pipeline.run')
    def test_achievements_text(self, mock_run):
        mock_run.return_value = sample_result()

        response = self.client.get('/achievements')

        self.assertEqual(response.mimetype, 'text/plain')
        self.assertEqual(response.get_data(as_text=True),
                         'After Week5 1900Z, Maverick has not died in 5 ops!\n')

    @patch('models.pipeline.run')
    def test_op_achievements_text(self, mock_run):
        mock_run.return_value = sample_result()

        response = self.client.get('/achievements/ops')

        self.assertIn('------ Week5 1900Z ------', response.get_data(as_text=True))

    @patch('models.pipeline.run')
    def test_member_lookup_is_case_insensitive(self, mock_run):
        mock_run.return_value = sample_result()

        response = self.client.get('/members/MAVERICK')

        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['display_name'], 'Maverick')
        self.assertEqual(data['five_ops_without_death'], 1)
        self.assertIn('Boltered 1 times', data['history'])

    @patch('models.pipeline.run')
    def test_unknown_member(self, mock_run):
        mock_run.return_value = sample_result()
        response = self.client.get('/members/Goose')
        self.assertEqual(response.status_code, 404)

    @patch('models.pipeline.run')
    def test_fetch_failure(self, mock_run):
        mock_run.side_effect = SheetFetchError('Unable to open spreadsheet')

        response = self.client.get('/ops')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.get_json()['error'], 'Unable to open spreadsheet')

    @patch('models.pipeline.run')
    def test_rate_limit(self, mock_run):
        mock_run.side_effect = RateLimitError()
        response = self.client.post('/run')
        self.assertEqual(response.status_code, 429)

    @patch('models.pipeline.run')
    def test_failed_run_keeps_previous_result(self, mock_run):
        mock_run.return_value = sample_result()
        self.client.post('/run')
        mock_run.side_effect = SheetFetchError()

        self.assertEqual(self.client.post('/run').status_code, 503)
        self.assertEqual(self.client.get('/ops').status_code, 200)

    @patch('models.pipeline.get_spreadsheet')
    def test_connection_error_is_service_unavailable(self, mock_get_spreadsheet):
        """A dropped connection while reading sheets is a 503 JSON error"""
        broken = MagicMock()
        broken.title = 'Week1'
        broken.get_all_values.side_effect = RequestsConnectionError('down')
        mock_get_spreadsheet.return_value.worksheets.return_value = [broken]

        response = self.client.post('/run')

        self.assertEqual(response.status_code, 503)
        self.assertIn('Week1', response.get_json()['error'])

    @patch('models.pipeline.get_spreadsheet')
    def test_connection_error_listing_sheets(self, mock_get_spreadsheet):
        mock_get_spreadsheet.return_value.worksheets.side_effect = RequestsConnectionError('down')

        response = self.client.get('/ops')

        self.assertEqual(response.status_code, 503)
        self.assertIn('error', response.get_json())

    @patch('models.pipeline.run')
    def test_member_name_with_percent(self, mock_run):
        """Names are decoded once, so a literal %41 survives"""
        grids = [make_grid('Week1', op_rows('1900Z', [member_row('Mav%41', deaths=0)]))]
        mock_run.return_value = pipeline.parse_grids(grids)

        response = self.client.get('/members/Mav%2541')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['display_name'], 'Mav%41')

    @patch('models.pipeline.run')
    def test_lock_not_held_during_run(self, mock_run):
        """Reads of the cached result don't wait on a running fetch"""
        lock_states = []

        def fake_run():
            lock_states.append(report._run_lock.locked())
            return sample_result()

        mock_run.side_effect = fake_run

        self.assertEqual(self.client.post('/run').status_code, 200)
        self.assertEqual(lock_states, [False])

    def test_metrics(self):
        response = self.client.get('/metrics')
        self.assertEqual(response.status_code, 200)
        self.assertIn('runs', response.get_json())

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.get_json(), {'status': 'ok'})


if __name__ == '__main__':
    unittest.main()
