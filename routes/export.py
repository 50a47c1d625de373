"""
Export routes for the Gradebook Export service
Generate workbooks, download them once, and list the export history
"""

import os
from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from services.attendance_service import AttendanceRegisterService
from services.errors import ExportError
from services.export_history_service import ExportHistoryService
from services.main_gradebook_service import MainGradebookService

export_bp = Blueprint('export', __name__)

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

def get_registry():
    return current_app.extensions['export_registry']

def _register(result):
    get_registry().register(result.export_id, result.path, result.kind)
    ExportHistoryService.record(result)

def _generate(service, failure_message):
    payload = request.get_json(silent=True)
    try:
        result = service.generate(payload)
    except ExportError as e:
        current_app.logger.info(f"Export rejected: {e}")
        return jsonify({'success': False, 'message': str(e)}), 400
    except Exception:
        current_app.logger.exception(failure_message)
        return jsonify({'success': False, 'message': failure_message}), 500

    _register(result)
    body = {
        'success': True,
        'id': result.export_id,
        'filename': result.filename,
        'truncated': result.truncated,
    }
    body.update(result.details or {})
    return jsonify(body)

def _download(kind, export_id):
    """Stream a registered export once, then delete it"""
    registry = get_registry()
    entry = registry.resolve(export_id, kind=kind) if export_id else None
    if entry is None or not os.path.isfile(entry.path):
        if entry is not None:
            registry.pop(export_id)
        return jsonify({'success': False, 'message': 'file not found'}), 404

    try:
        with open(entry.path, 'rb') as f:
            data = f.read()
    except OSError:
        current_app.logger.exception(f"Could not read export {export_id}")
        registry.pop(export_id)
        return jsonify({'success': False, 'message': 'download failed'}), 500

    registry.discard(export_id)
    ExportHistoryService.mark_downloaded(export_id)
    return send_file(
        BytesIO(data),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=os.path.basename(entry.path),
    )

@export_bp.route('/export/main-gradebook', methods=['POST'])
def generate_main_gradebook():
    """Generate the main gradebook workbook"""
    service = MainGradebookService.from_config(current_app.config, current_app.config.get('PROJECT_ROOT'))
    return _generate(service, 'failed to export main gradebook')

@export_bp.route('/export/main-gradebook', methods=['GET'])
def download_main_gradebook():
    """Download a generated main gradebook"""
    return _download('main-gradebook', request.args.get('id', ''))

@export_bp.route('/export/attendance', methods=['POST'])
def generate_attendance():
    """Generate the attendance register workbook"""
    service = AttendanceRegisterService.from_config(current_app.config, current_app.config.get('PROJECT_ROOT'))
    return _generate(service, 'failed to export attendance')

@export_bp.route('/export/attendance', methods=['GET'])
def download_attendance():
    """Download a generated attendance register"""
    return _download('attendance', request.args.get('id', ''))

@export_bp.route('/dashboard/exports')
def list_exports():
    """Recent exports, newest first"""
    limit = current_app.config.get('EXPORT_HISTORY_LIMIT', 100)
    return jsonify({'success': True, 'exports': ExportHistoryService.recent(limit, registry=get_registry())})

@export_bp.route('/dashboard/exports/<export_id>', methods=['DELETE'])
def delete_export(export_id):
    """Forget an export and delete its file"""
    entry = get_registry().discard(export_id)
    success, message = ExportHistoryService.remove(export_id)
    if entry is None and not success:
        return jsonify({'success': False, 'message': message}), 404
    return jsonify({'success': True})
