from flask import Flask, render_template, request, jsonify
import psycopg2
from explain_fetcher import DEFAULT_DB_PARAMS, ExplainFetcher
from graph_visualizer import visualize_query_plan
from plan_records import PlanFormatError

app = Flask(__name__, static_folder='static')
app.config['DB_PARAMS'] = dict(DEFAULT_DB_PARAMS)


@app.route('/')
def index():
    return render_template('index.html')


@app.route('/visualize', methods=['POST'])
def visualize():
    print("Visualize endpoint called")  # Debug output

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or 'plan' not in payload:
        return jsonify({'success': False, 'error': 'Missing "plan" in request body'}), 400

    try:
        dot_source, svg_content = visualize_query_plan(payload['plan'])
    except PlanFormatError as e:
        print(f"Malformed plan in visualize endpoint: {e}")  # Debug output
        return jsonify({'success': False, 'error': f'Malformed query plan: {e}'}), 400

    return jsonify({
        'success': True,
        'dot': dot_source,
        'svg': svg_content
    })


@app.route('/explain', methods=['POST'])
def explain():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({'success': False, 'error': 'Request body must be a JSON object'}), 400

    sql_query = payload.get('sql', '')
    print("Explain endpoint called: ", sql_query)  # Debug output

    if not isinstance(sql_query, str):
        return jsonify({'success': False, 'error': '"sql" must be a string'}), 400
    if not sql_query.strip():
        return jsonify({'success': False, 'error': 'Empty SQL query'}), 400

    try:
        with ExplainFetcher(app.config['DB_PARAMS']) as fetcher:
            plan = fetcher.fetch_plan(sql_query, analyze=bool(payload.get('analyze')))
        dot_source, svg_content = visualize_query_plan(plan)
    except PlanFormatError as e:
        print(f"Malformed plan in explain endpoint: {e}")  # Debug output
        return jsonify({'success': False, 'error': f'Malformed query plan: {e}'}), 400
    except psycopg2.Error as e:
        print(f"Database error in explain endpoint: {e}")  # Debug output
        return jsonify({'success': False, 'error': f'EXPLAIN failed: {e}'}), 500

    return jsonify({
        'success': True,
        'plan': plan,
        'dot': dot_source,
        'svg': svg_content
    })


if __name__ == '__main__':
    app.run(debug=True)
