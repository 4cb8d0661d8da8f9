"""
API routes/handlers
"""
import logging
from dataclasses import replace

from flask import Blueprint, Response, current_app, jsonify, request
from pydantic import ValidationError

from ..application import face_service as service_errors
from ..application.export import export_filename, faces_to_csv, results_to_json
from ..application.face_service import FaceAnalysisService
from ..domain.interfaces import AnalysisStorageInterface
from ..domain.schemas import FaceAnalysisCreateSchema
from ..domain.stats import calculate_analysis_stats, confidence_level
from ..infrastructure.image_loader import is_image_mime_type
from ..infrastructure.overlay_renderer import encode_png, render_overlay

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)

INVALID_FILE_TYPE = "Please upload a valid image file (JPG, PNG, WebP)."

_FAILURE_STATUS = {
    service_errors.MODELS_NOT_READY: 503,
    service_errors.DECODE_FAILED: 400,
}


def init_routes(app, face_service: FaceAnalysisService, storage: AnalysisStorageInterface):
    """Attach service dependencies to the app"""
    app.extensions['facelens'] = {
        'face_service': face_service,
        'storage': storage,
    }


def _face_service() -> FaceAnalysisService:
    return current_app.extensions['facelens']['face_service']


def _storage() -> AnalysisStorageInterface:
    return current_app.extensions['facelens']['storage']


def _failure(error: str, status: int):
    return jsonify({
        "success": False,
        "error": error,
        "faces": [],
    }), status


def _not_ready():
    health = _face_service().get_health()
    return _failure(health.error or service_errors.MODELS_NOT_READY, 503)


def _read_upload():
    """
    Return (bytes, file name) from a multipart ``image`` field or a raw body.

    Raises ValueError with a user-facing message for non-image uploads.
    """
    allowed = current_app.config.get('ALLOWED_MIME_TYPES')
    upload = request.files.get('image')
    if upload is not None:
        if not is_image_mime_type(upload.mimetype, allowed):
            raise ValueError(INVALID_FILE_TYPE)
        file_name = request.args.get('filename') or upload.filename or 'upload'
        return upload.read(), file_name

    if not is_image_mime_type(request.mimetype, allowed):
        raise ValueError(INVALID_FILE_TYPE)
    data = request.get_data()
    if not data:
        raise ValueError("No image data in request body")
    return data, request.args.get('filename') or 'upload'


def _flag(name: str) -> bool:
    return request.args.get(name, 'false').lower() in ('1', 'true', 'yes')


def _analysis_body(result):
    body = result.to_dict()
    body["confidenceLevels"] = {
        face.id: confidence_level(face.combined_confidence) for face in result.faces
    }
    return body


@api.route('/health', methods=['GET'])
def health():
    """Health check endpoint"""
    status = _face_service().get_health()
    return jsonify(status.to_dict())


@api.route('/ready', methods=['GET'])
def ready():
    """Readiness check endpoint"""
    if _face_service().is_ready():
        return jsonify({"ready": True})
    return jsonify({"ready": False}), 503


@api.route('/api/analyze', methods=['POST'])
def analyze():
    """Detect and refine faces in an uploaded image"""
    if not _face_service().is_ready():
        return _not_ready()

    try:
        image_data, file_name = _read_upload()
    except ValueError as e:
        return _failure(str(e), 400)

    result = _face_service().analyze_bytes(image_data, file_name=file_name, save=_flag('save'))
    if not result.success:
        return _failure(result.error, _FAILURE_STATUS.get(result.error, 500))

    return jsonify(_analysis_body(result))


@api.route('/api/annotate', methods=['POST'])
def annotate():
    """Analyze an upload and return it as PNG with face overlays"""
    service = _face_service()
    if not service.is_ready():
        return _not_ready()

    try:
        image_data, file_name = _read_upload()
    except ValueError as e:
        return _failure(str(e), 400)

    image = service.image_loader.load_from_bytes(image_data)
    if image is None:
        return _failure(service_errors.DECODE_FAILED, 400)

    result = service.analyze_image(image, file_name=file_name, save=_flag('save'))
    if not result.success:
        return _failure(result.error, _FAILURE_STATUS.get(result.error, 500))

    height, width = image.shape[:2]
    display_width = request.args.get('display_width', type=int) or width
    display_height = request.args.get('display_height', type=int) or height
    if display_width <= 0 or display_height <= 0:
        return _failure("Display size must be positive", 400)

    overlay = render_overlay(image, result.faces, (display_width, display_height))
    response = Response(encode_png(overlay), mimetype='image/png')
    response.headers['X-Face-Count'] = str(len(result.faces))
    if result.analysis_id:
        response.headers['X-Analysis-Id'] = result.analysis_id
    return response


@api.route('/api/analyses', methods=['POST'])
def create_analysis():
    """Persist a completed analysis"""
    try:
        payload = FaceAnalysisCreateSchema.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    record = _storage().create_analysis(payload.to_domain())
    logger.info(f"Created analysis {record.id} for {record.image_file_name}")
    return jsonify(record.to_dict())


@api.route('/api/analyses', methods=['GET'])
def list_analyses():
    """Most recent analyses, newest first"""
    default_limit = current_app.config.get('HISTORY_LIMIT', 10)
    limit = request.args.get('limit', default=default_limit, type=int)
    records = _storage().list_analyses(limit)
    return jsonify([record.to_dict() for record in records])


@api.route('/api/analyses/<analysis_id>', methods=['GET'])
def get_analysis(analysis_id: str):
    record = _storage().get_analysis(analysis_id)
    if record is None:
        return jsonify({"error": "Analysis not found"}), 404
    return jsonify(record.to_dict())


@api.route('/api/analyses/<analysis_id>/export', methods=['GET'])
def export_analysis(analysis_id: str):
    """Download a stored analysis as JSON or CSV"""
    record = _storage().get_analysis(analysis_id)
    if record is None:
        return jsonify({"error": "Analysis not found"}), 404

    export_format = request.args.get('format', 'json').lower()
    faces = list(record.detected_faces)

    if export_format == 'csv':
        body, mimetype = faces_to_csv(faces), 'text/csv'
    elif export_format == 'json':
        # Stored records keep the elapsed-time string, not milliseconds
        stats = calculate_analysis_stats(faces, 0, record.image_dimensions)
        if record.processing_time:
            stats = replace(stats, processing_time=record.processing_time)
        body = results_to_json(faces, stats, record.image_file_name, record.analysis_timestamp)
        mimetype = 'application/json'
    else:
        return jsonify({"error": f"Unsupported export format: {export_format}"}), 400

    filename = export_filename(record.image_file_name, export_format, record.analysis_timestamp)
    response = Response(body, mimetype=mimetype)
    response.headers['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response
