"""
Flask routes for the puzzle trainer API.
"""

import random

from flask import request, jsonify

from trainer.coach import CoachClient
from trainer.config import load_config, puzzle_database_path
from trainer.constants import MAX_LIVE_SESSIONS
from trainer.daily import fetch_daily_puzzle, puzzle_from_daily
from trainer.database import save_high_score, load_high_score
from trainer.errors import NoPlayablePuzzle, UnusablePuzzle, DailyPuzzleError
from trainer.evaluation import evaluator_from_config
from trainer.orientation import OrientationSelector, UNAVAILABLE_SIDE_TO_MOVE
from trainer.puzzle import load_puzzle_database, pick_random
from trainer.session import SurvivalRun, next_session
from web.registry import Registry


def register_routes(app):
    """Register all routes with the Flask app."""

    # Finished sessions and runs are dropped as soon as they end
    max_live = app.config.get('MAX_LIVE_SESSIONS', MAX_LIVE_SESSIONS)
    sessions = Registry(max_live)
    runs = Registry(max_live)

    def get_config():
        if 'TRAINER_CONFIG' not in app.config:
            app.config['TRAINER_CONFIG'] = load_config()
        return app.config['TRAINER_CONFIG']

    def get_puzzles():
        if 'PUZZLES' not in app.config:
            app.config['PUZZLES'] = load_puzzle_database(puzzle_database_path(get_config()))
        return app.config['PUZZLES']

    def get_selector():
        if 'SELECTOR' not in app.config:
            config = get_config()
            evaluator = evaluator_from_config(config, offline=app.config.get('OFFLINE_ANALYSIS', False))
            policy = config['analysis'].get('on_unavailable', UNAVAILABLE_SIDE_TO_MOVE)
            app.config['SELECTOR'] = OrientationSelector(evaluator, policy)
        return app.config['SELECTOR']

    def get_rng():
        if 'RNG' not in app.config:
            app.config['RNG'] = random.Random()
        return app.config['RNG']

    def get_coach():
        if 'COACH_CLIENT' not in app.config:
            app.config['COACH_CLIENT'] = CoachClient()
        return app.config['COACH_CLIENT']

    def move_from_body():
        data = request.get_json(silent=True)
        if not data:
            return None, (jsonify({'error': 'missing JSON body'}), 400)
        move = data.get('move')
        if not move or not isinstance(move, str):
            return None, (jsonify({'error': 'missing field: move'}), 400)
        return move.strip(), None

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/api/puzzles/next', methods=['POST'])
    def next_puzzle():
        """Draw a puzzle (optionally filtered) and start a session for it."""
        data = request.get_json(silent=True) or {}
        difficulty = data.get('difficulty') or None
        phase = data.get('phase') or None
        rng = get_rng()

        try:
            session = next_session(
                get_puzzles(), get_selector(),
                lambda puzzles: pick_random(puzzles, difficulty, phase, rng),
            )
        except NoPlayablePuzzle as e:
            return jsonify({'error': str(e)}), 503

        sessions.add(session.session_id, session)
        return jsonify(session.state())

    @app.route('/api/puzzles/daily', methods=['POST'])
    def daily_puzzle():
        """Start a session on today's daily puzzle."""
        try:
            puzzle = puzzle_from_daily(fetch_daily_puzzle())
            session = get_selector().prepare(puzzle)
        except (DailyPuzzleError, UnusablePuzzle) as e:
            return jsonify({'error': str(e)}), 503

        sessions.add(session.session_id, session)
        return jsonify(session.state())

    @app.route('/api/sessions/<session_id>')
    def session_state(session_id):
        session = sessions.get(session_id)
        if session is None:
            return jsonify({'error': 'unknown session'}), 404
        return jsonify(session.state())

    @app.route('/api/sessions/<session_id>/move', methods=['POST'])
    def session_move(session_id):
        session = sessions.get(session_id)
        if session is None:
            return jsonify({'error': 'unknown session'}), 404
        move, error = move_from_body()
        if error:
            return error

        outcome = session.submit_move(move)
        if session.is_complete:
            sessions.discard(session_id)
        return jsonify({'outcome': outcome.to_dict(), 'session': session.state()})

    @app.route('/api/sessions/<session_id>/hint', methods=['POST'])
    def session_hint(session_id):
        session = sessions.get(session_id)
        if session is None:
            return jsonify({'error': 'unknown session'}), 404
        hint = session.hint()
        return jsonify({'hint': hint.to_dict() if hint else None})

    @app.route('/api/survival', methods=['POST'])
    def survival_start():
        """Start a survival run."""
        data = request.get_json(silent=True) or {}
        run = SurvivalRun(get_puzzles(), get_selector(), get_rng(),
                          settings=get_config().get('survival'),
                          player=data.get('player') or 'default')
        try:
            run.next_puzzle()
        except NoPlayablePuzzle as e:
            return jsonify({'error': str(e)}), 503

        runs.add(run.run_id, run)
        return jsonify(run.state())

    @app.route('/api/survival/<run_id>')
    def survival_state(run_id):
        run = runs.get(run_id)
        if run is None:
            return jsonify({'error': 'unknown run'}), 404
        return jsonify(run.state())

    @app.route('/api/survival/<run_id>/move', methods=['POST'])
    def survival_move(run_id):
        run = runs.get(run_id)
        if run is None:
            return jsonify({'error': 'unknown run'}), 404
        move, error = move_from_body()
        if error:
            return error

        was_over = run.is_over
        try:
            outcome = run.submit_move(move)
        except NoPlayablePuzzle as e:
            return jsonify({'error': str(e)}), 503

        high_score = None
        if run.is_over and not was_over:
            high_score = save_high_score(run.player, run.best_rating,
                                         run.score, run.best_streak)
            runs.discard(run_id)
        return jsonify({'outcome': outcome.to_dict(), 'run': run.state(),
                        'high_score': high_score})

    @app.route('/api/survival/<run_id>/hint', methods=['POST'])
    def survival_hint(run_id):
        run = runs.get(run_id)
        if run is None:
            return jsonify({'error': 'unknown run'}), 404
        hint = run.current.hint() if run.current and not run.is_over else None
        return jsonify({'hint': hint.to_dict() if hint else None})

    @app.route('/api/survival/<run_id>/restart', methods=['POST'])
    def survival_restart(run_id):
        run = runs.get(run_id)
        if run is None:
            return jsonify({'error': 'unknown run'}), 404
        try:
            run.reset()
        except NoPlayablePuzzle as e:
            return jsonify({'error': str(e)}), 503
        return jsonify(run.state())

    @app.route('/api/getHint', methods=['GET'])
    def get_hint():
        """Coach chat proxy."""
        fen = request.args.get('fen')
        if not fen:
            return jsonify({'error': 'FEN is required'}), 400

        answer = get_coach().ask(
            fen=fen,
            solution_move=request.args.get('solutionMove') or None,
            question=request.args.get('question') or None,
            user_move=request.args.get('userMove') or None,
            puzzle_type=request.args.get('puzzleType') or None,
            move_number=request.args.get('moveNumber', type=int),
        )
        return jsonify(answer)

    @app.route('/api/highscore/<player>')
    def high_score(player):
        record = load_high_score(player)
        if record is None:
            return jsonify({'player': player, 'best_rating': 0,
                            'puzzles_solved': 0, 'best_streak': 0})
        return jsonify(record)
