import os
import uuid
import magic
from flask import Blueprint, request, jsonify, current_app, send_from_directory, abort
from flask_jwt_extended import jwt_required
from werkzeug.utils import secure_filename
from eltutils.access_control import HR_ROLES
from eltutils.decorators import role_required

upload_bp = Blueprint('uploads', __name__)

WORD_MIME_TYPES = {
    'application/msword', 'application/CDFV2', 'application/x-ole-storage',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document', 'application/zip',
}
SHEET_MIME_TYPES = {
    'application/vnd.ms-excel', 'application/CDFV2', 'application/x-ole-storage',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', 'application/zip',
}

DOCUMENT_EXTENSIONS = {'pdf', 'doc', 'docx', 'xls', 'xlsx'}
DOCUMENT_MIME_TYPES = {'application/pdf'} | WORD_MIME_TYPES | SHEET_MIME_TYPES

RESUME_EXTENSIONS = {'pdf', 'doc', 'docx', 'txt', 'md', 'rtf'}
RESUME_MIME_TYPES = {
    'application/pdf', 'text/plain', 'text/markdown', 'text/rtf', 'application/rtf',
} | WORD_MIME_TYPES

ATTACHMENT_EXTENSIONS = {'pdf', 'doc', 'docx', 'png', 'jpg', 'jpeg'}
ATTACHMENT_MIME_TYPES = {'application/pdf', 'image/jpeg', 'image/png'} | WORD_MIME_TYPES


def detect_mime(head):
    return magic.from_buffer(head, mime=True)


def file_extension(filename):
    return filename.rsplit('.', 1)[1].lower() if '.' in filename else ''


def allowed_file(file, extensions=DOCUMENT_EXTENSIONS, mime_types=DOCUMENT_MIME_TYPES):
    if not file or not file.filename or file_extension(file.filename) not in extensions:
        return False
    mime = detect_mime(file.read(2048))
    file.seek(0)
    return mime in mime_types


def save_file(file, folder, old_path=None):
    filename = secure_filename(file.filename)
    unique_filename = f"{uuid.uuid4().hex}_{filename}"
    upload_folder = os.path.join(current_app.config.get('UPLOAD_FOLDER', 'uploads/'), folder)
    os.makedirs(upload_folder, exist_ok=True)
    filepath = os.path.join(upload_folder, unique_filename)
    file.save(filepath)

    if old_path:
        delete_stored_file(old_path)

    return filepath.replace('\\', '/')


def stored_path(path):
    """Resolve a path inside the upload folder, or None when it points anywhere else."""
    if not path:
        return None
    upload_root = os.path.realpath(current_app.config.get('UPLOAD_FOLDER', 'uploads/'))
    full_path = os.path.realpath(path)
    if not full_path.startswith(upload_root + os.sep):
        return None
    return full_path


def delete_stored_file(path):
    """Remove a file previously written by save_file; paths outside the upload folder are ignored."""
    full_path = stored_path(path)
    if full_path is None or not os.path.exists(full_path):
        return
    try:
        os.remove(full_path)
    except OSError as e:
        current_app.logger.warning("Could not remove %s: %s", full_path, e)


def serve_file(path, download_name=None):
    full_path = stored_path(path)
    if full_path is None or not os.path.isfile(full_path):
        abort(404, description="File not found")
    directory, filename = os.path.split(full_path)
    return send_from_directory(directory, filename, as_attachment=True, download_name=download_name)


@upload_bp.route('/resume', methods=['POST'])
@jwt_required()
@role_required(*HR_ROLES)
def upload_resume():
    file = request.files.get('resume')
    if not file or not file.filename:
        return jsonify({"message": "No resume file provided"}), 400
    if not allowed_file(file, RESUME_EXTENSIONS, RESUME_MIME_TYPES):
        return jsonify({"message": "Resume must be a PDF, Word or text file"}), 400

    path = save_file(file, 'resumes')
    return jsonify({
        "message": "Resume uploaded successfully",
        "resumeUrl": path,
        "originalName": file.filename
    }), 201
