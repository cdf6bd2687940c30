# upload_intake/api/routes/upload_routes.py
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from upload_intake.api.schemas.upload_schema import UploadFileResponse, UploadFilesResponse
from upload_intake.config.flask_config import get_settings
from upload_intake.core.upload_policy import UploadPolicy
from upload_intake.services.upload_service import UploadService

bp_uploads = Blueprint("uploads", __name__)


def _build_service() -> UploadService:
    return UploadService()


def _policy_and_dir() -> tuple[UploadPolicy, str]:
    # one policy per request, never shared
    settings = get_settings(current_app)
    return UploadPolicy.from_settings(settings), settings.upload_dir


@bp_uploads.post("/upload")
def upload_files():
    policy, upload_dir = _policy_and_dir()

    records = _build_service().process_batch(request, upload_dir, policy)

    payload = UploadFilesResponse(
        files=[UploadFileResponse.from_record(r) for r in records]
    ).model_dump()
    return jsonify(payload), 201


@bp_uploads.post("/upload-one")
def upload_one_file():
    policy, upload_dir = _policy_and_dir()

    record = _build_service().process_single(request, upload_dir, policy)

    return jsonify(UploadFileResponse.from_record(record).model_dump()), 201
