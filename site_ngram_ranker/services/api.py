"""
HTTP endpoints for n-gram rankings.
"""

from dataclasses import replace
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, request

from site_ngram_ranker.crawl import RankingResult
from site_ngram_ranker.utils.logging import get_logger
from site_ngram_ranker.utils.errors import ValidationError
from .ranker import NGramRanker


logger = get_logger(__name__)


def _int_arg(name: str, default: Optional[int] = None,
             minimum: Optional[int] = None, maximum: Optional[int] = None) -> Optional[int]:
    """
    Read an integer query parameter.

    Raises:
        ValidationError: If the value is not an integer or out of range
    """
    raw_value = request.args.get(name)
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        value = int(raw_value)
    except ValueError:
        raise ValidationError(f"Parameter '{name}' must be an integer", {"parameter": name})

    if minimum is not None and value < minimum:
        raise ValidationError(f"Parameter '{name}' must be at least {minimum}", {"parameter": name})
    if maximum is not None and value > maximum:
        raise ValidationError(f"Parameter '{name}' must be at most {maximum}", {"parameter": name})

    return value


def _result_response(result: RankingResult):
    stats = result.stats.to_dict() if result.stats else None

    if not result.success:
        return jsonify({'error': result.error_message, 'stats': stats}), 502

    return jsonify({
        'url': result.seed_url,
        'order': result.order,
        'ngrams': [entry.to_dict() for entry in result.entries],
        'stats': stats
    })


def create_app(ranker: NGramRanker, max_pages_limit: int = 50) -> Flask:
    """
    Create the Flask application.

    Args:
        ranker: Ranker shared by all requests
        max_pages_limit: Largest max_pages a request may ask for

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)

    def rank(order: Optional[int] = None):
        try:
            url = request.args.get('url', '').strip()
            if not url:
                return jsonify({'error': "Missing required parameter 'url'"}), 400

            if order is None:
                order = _int_arg('n', default=ranker.budget.ngram_order, minimum=1, maximum=3)
            limit = _int_arg('limit', default=ranker.budget.result_limit, minimum=1)
            max_pages = _int_arg('max_pages', default=ranker.budget.max_pages,
                                 minimum=1, maximum=max_pages_limit)

            budget = replace(ranker.budget, result_limit=limit, max_pages=max_pages)
            result = ranker.rank(url, order, budget)

        except ValidationError as e:
            logger.info(f"Rejected ranking request: {e.message}")
            return jsonify({'error': e.message}), 400
        except Exception as e:
            logger.error(f"Ranking request failed: {str(e)}")
            return jsonify({
                'error': str(e),
                'timestamp': datetime.now().isoformat()
            }), 500

        return _result_response(result)

    @app.route('/unigrams', methods=['GET'])
    def unigrams():
        """Top single words of a site."""
        return rank(1)

    @app.route('/bigrams', methods=['GET'])
    def bigrams():
        """Top two-word sequences of a site."""
        return rank(2)

    @app.route('/trigrams', methods=['GET'])
    def trigrams():
        """Top three-word sequences of a site."""
        return rank(3)

    @app.route('/ngrams', methods=['GET'])
    def ngrams():
        """Top n-grams of a site, order chosen by the 'n' parameter."""
        return rank()

    @app.route('/health', methods=['GET'])
    def health_check():
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now().isoformat(),
            'budget': ranker.budget.to_dict()
        })

    return app


def serve(ranker: NGramRanker, host: str = '127.0.0.1', port: int = 8080,
          max_pages_limit: int = 50) -> None:
    """Run the API on Flask's threaded server until interrupted."""
    app = create_app(ranker, max_pages_limit=max_pages_limit)
    logger.info(f"N-gram API listening on {host}:{port}")
    app.run(host=host, port=port, debug=False, use_reloader=False, threaded=True)
