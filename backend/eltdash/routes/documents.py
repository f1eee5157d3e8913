import os
from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from pydantic import ValidationError
from sqlalchemy import or_
from eltdash.models import Document, School
from eltdash.extensions import db
from eltdash.schemas import DocumentCreate
from eltdash.routes.common import (
    get_json_payload, current_user_or_401, scoped_school_ids, check_school_access,
    require_reference, invalid, validate
)
from eltdash.routes.uploads import allowed_file, save_file, delete_stored_file, serve_file, stored_path
from eltutils.access_control import MANAGE_ROLES
from eltutils.audit import record_activity
from eltutils.decorators import role_required

documents_bp = Blueprint("documents", __name__)


def _visible_documents(user):
    allowed = scoped_school_ids(user)
    query = Document.query.filter(or_(Document.school_id.is_(None), Document.school_id.in_(allowed)))
    doc_type = request.args.get("type")
    if doc_type:
        query = query.filter(Document.type == doc_type)
    return query.order_by(Document.upload_date.desc())


def _visible_document(document_id):
    user = current_user_or_401()
    document = db.get_or_404(Document, document_id, description="Document not found")
    check_school_access(user, document.school_id)
    return document


def _store(document):
    db.session.add(document)
    record_activity("document_added", f"Document {document.title} added")
    db.session.commit()
    return jsonify(document.to_dict()), 201


@documents_bp.route('', methods=['GET'])
@jwt_required()
def list_documents():
    items = _visible_documents(current_user_or_401()).all()
    return jsonify([d.to_dict() for d in items]), 200


@documents_bp.route('/<int:document_id>', methods=['GET'])
@jwt_required()
def get_document(document_id):
    return jsonify(_visible_document(document_id).to_dict()), 200


@documents_bp.route('', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def create_document():
    user = current_user_or_401()
    try:
        data = DocumentCreate.model_validate(get_json_payload())
    except ValidationError as e:
        return invalid("document", e)

    if not data.file_url.startswith(("http://", "https://")) and stored_path(data.file_url) is None:
        return jsonify({"message": "fileUrl must be a link or a file in the upload folder"}), 400

    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)
    return _store(Document(**data.model_dump()))


@documents_bp.route('/upload', methods=['POST'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def upload_document():
    user = current_user_or_401()
    file = request.files.get("file")
    if not file or not file.filename:
        return jsonify({"message": "No file provided"}), 400
    if not allowed_file(file):
        return jsonify({"message": "Only PDF, Word and Excel files are allowed"}), 400

    form = request.form.to_dict()
    form.setdefault("title", os.path.splitext(file.filename)[0])
    form.setdefault("type", "general")
    form["fileUrl"] = "pending"
    form["originalName"] = file.filename
    if not form.get("schoolId"):
        form.pop("schoolId", None)

    data, error = validate(DocumentCreate, form, "document")
    if error:
        return error
    require_reference(School, data.school_id, "School")
    check_school_access(user, data.school_id)

    document = Document(**data.model_dump())
    document.file_url = save_file(file, "documents")
    return _store(document)


@documents_bp.route('/<int:document_id>/download', methods=['GET'])
@jwt_required()
def download_document(document_id):
    document = _visible_document(document_id)
    return serve_file(document.file_url, download_name=document.original_name)


@documents_bp.route('/<int:document_id>', methods=['DELETE'])
@jwt_required()
@role_required(*MANAGE_ROLES)
def delete_document(document_id):
    document = _visible_document(document_id)
    delete_stored_file(document.file_url)
    db.session.delete(document)
    record_activity("document_deleted", f"Document {document.title} deleted")
    db.session.commit()
    return '', 204
