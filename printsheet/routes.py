"""
Flask routes for the Print Sheet Builder
Exposes the page catalog, layout plans and sheet downloads
"""

import io
from pathlib import Path
from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.utils import secure_filename
from loguru import logger

from .composite import CompositeSettings, MIMETYPES, normalize_format
from .errors import (
    ValidationError, ConfigurationError, ProcessingError, ImageDecodeError,
    InvalidImageFormatError, FileTooLargeError,
    create_error_recovery_suggestions
)
from .sheet import generate_print_sheet, plan_sheet


bp = Blueprint('main', __name__)


def _catalog():
    return current_app.extensions['page_catalog']


def _print_config():
    return current_app.extensions['print_config']


@bp.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


@bp.route('/api/pages', methods=['GET'])
def pages():
    """Page sizes for the page dropdown"""
    catalog = _catalog()
    return jsonify({
        'default': catalog.default_page,
        'pages': catalog.page_options()
    })


@bp.route('/api/standards', methods=['GET'])
def standards():
    """Photo standards for the standard dropdown"""
    catalog = _catalog()
    return jsonify({
        'default': catalog.default_standard,
        'standards': catalog.standard_options()
    })


@bp.route('/api/layout', methods=['GET'])
def layout():
    """Grid and cell positions for a page/standard pair, without rendering"""
    plan = plan_sheet(
        request.args.get('page'),
        request.args.get('standard'),
        layout=_print_config().layout_config(),
        catalog=_catalog()
    )
    return jsonify(plan.to_dict())


@bp.route('/api/sheet', methods=['POST'])
def sheet():
    """Render a print sheet from an uploaded photo"""
    try:
        if 'photo' not in request.files:
            raise ValidationError("No photo file uploaded")

        photo_file = request.files['photo']
        if photo_file.filename == '':
            raise ValidationError("No photo file selected")

        photo_data = validate_upload(photo_file)
        settings = output_settings(request.form.get('format'))

        logger.info(f"Sheet requested - Photo: {secure_filename(photo_file.filename)}, "
                    f"Page: {request.form.get('page')}, Standard: {request.form.get('standard')}")

        result = generate_print_sheet(
            photo_data,
            request.form.get('page'),
            request.form.get('standard'),
            layout=_print_config().layout_config(),
            settings=settings,
            catalog=_catalog()
        )

        response = send_file(
            io.BytesIO(result.data),
            mimetype=result.mimetype,
            as_attachment=True,
            download_name=result.filename
        )
        response.headers['X-Sheet-Page'] = result.plan.page.key
        response.headers['X-Sheet-Standard'] = result.plan.standard.key
        response.headers['X-Sheet-Count'] = str(result.plan.count)
        response.headers['X-Sheet-Rotated'] = str(result.plan.grid.rotated).lower()
        return response

    except ValidationError as e:
        logger.warning(f"Validation error: {e}")
        payload = e.to_dict()
        payload['suggestions'] = create_error_recovery_suggestions(
            e, {'has_photo': bool(request.files.get('photo'))}
        )
        return jsonify(payload), 400

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return jsonify(e.to_dict()), 500

    except ImageDecodeError as e:
        logger.error(f"Photo decode error: {e}")
        return jsonify(e.to_dict()), 422

    except ProcessingError as e:
        logger.error(f"Processing error: {e}")
        payload = e.to_dict()
        payload['suggestions'] = create_error_recovery_suggestions(e)
        return jsonify(payload), 500


def validate_upload(file) -> bytes:
    """Check extension and size of an uploaded photo and return its bytes"""
    allowed_extensions = current_app.config.get('ALLOWED_EXTENSIONS', ['.jpg', '.jpeg', '.png'])
    file_ext = Path(file.filename).suffix.lower()
    if file_ext not in allowed_extensions:
        raise InvalidImageFormatError(file.filename, allowed_extensions)

    data = file.read()
    max_size = current_app.config.get('MAX_UPLOAD_SIZE', 20 * 1024 * 1024)
    if len(data) > max_size:
        raise FileTooLargeError(
            filename=file.filename,
            size_mb=len(data) / (1024 * 1024),
            limit_mb=max_size / (1024 * 1024)
        )

    return data


def output_settings(requested_format: str = None) -> CompositeSettings:
    """Renderer settings from config, with an optional per-request format"""
    settings = CompositeSettings.from_config(_print_config())

    if requested_format:
        output_format = normalize_format(requested_format)
        if output_format not in MIMETYPES:
            raise ValidationError(
                f"Unsupported output format: {requested_format}",
                details={'requested_format': requested_format, 'supported': sorted(MIMETYPES)},
                suggestions=["Use 'jpeg' or 'png'"]
            )
        settings.output_format = output_format

    return settings


@bp.app_errorhandler(RequestEntityTooLarge)
def upload_too_large(e):
    """Body rejected by Werkzeug before it was read (MAX_CONTENT_LENGTH)"""
    limit = current_app.config.get('MAX_UPLOAD_SIZE', 20 * 1024 * 1024)
    error = FileTooLargeError(
        filename='upload',
        size_mb=(request.content_length or 0) / (1024 * 1024),
        limit_mb=limit / (1024 * 1024)
    )
    logger.warning(f"Validation error: {error}")
    return jsonify(error.to_dict()), 400
