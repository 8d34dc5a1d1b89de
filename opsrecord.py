from flask import Flask, jsonify

from routes.report import register_report_routes

app = Flask(__name__)

# Register route modules
register_report_routes(app)


@app.route('/health')
def health():
    return jsonify({'status': 'ok'})


if __name__ == '__main__':
    app.run(debug=True, port=5001)
