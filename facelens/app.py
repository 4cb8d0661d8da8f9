"""
FaceLens - face analysis service
Main application entry point
"""
import logging
import sys

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .config import get_config
from .infrastructure.image_loader import ImageLoader
from .infrastructure.storage import create_storage
from .application.face_service import FaceAnalysisService
from .api.routes import api, init_routes

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def _build_detector(config):
    # Imported lazily so the web layer can start (and be tested) without loading onnx models
    from .infrastructure.insightface_detector import InsightFaceDetector

    return InsightFaceDetector(config)


def create_app(config=None, detector=None, storage=None, image_loader=None) -> Flask:
    """Application factory"""
    config = config or get_config()

    app = Flask(__name__)
    app.config['DEBUG'] = config.DEBUG
    app.config['HISTORY_LIMIT'] = config.HISTORY_LIMIT
    app.config['ALLOWED_MIME_TYPES'] = config.ALLOWED_MIME_TYPES
    app.config['MAX_CONTENT_LENGTH'] = config.MAX_IMAGE_SIZE + 1024 * 1024

    # Enable CORS
    CORS(app)

    if detector is None:
        logger.info("Initializing face detector...")
        detector = _build_detector(config)
    if not detector.is_ready():
        logger.error("Face detector is not ready; analysis endpoints will return 503")

    if storage is None:
        storage = create_storage(config)

    face_service = FaceAnalysisService(
        detector=detector,
        image_loader=image_loader or ImageLoader(max_image_size=config.MAX_IMAGE_SIZE),
        storage=storage,
        target_width=config.DETECTION_TARGET_WIDTH,
        paddings=config.ENSEMBLE_PADDINGS,
        ensemble_enabled=config.ENSEMBLE_ENABLED,
    )

    init_routes(app, face_service, storage)
    app.register_blueprint(api)

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        logger.exception(f"Unhandled error: {e}")
        return jsonify({"error": INTERNAL_ERROR}), 500

    logger.info("Application initialized successfully")
    return app


def main():
    """Main entry point"""
    config = get_config()
    configure_logging(config.LOG_LEVEL)

    logger.info(f"Starting FaceLens on {config.HOST}:{config.PORT}")
    logger.info(f"Model: {config.MODEL_NAME}")
    logger.info(f"GPU enabled: {config.USE_GPU}")

    app = create_app(config)
    app.run(
        host=config.HOST,
        port=config.PORT,
        debug=config.DEBUG,
        threaded=True,
    )


if __name__ == '__main__':
    main()
