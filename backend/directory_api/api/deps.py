"""FastAPI dependencies that hand out the components built at startup"""

from fastapi import Request

from directory_api.core.config import Settings
from directory_api.core.place_importer import PlaceImporter
from directory_api.core.stores import Stores
from directory_api.core.submissions import SubmissionService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_stores(request: Request) -> Stores:
    return request.app.state.stores


def get_submission_service(request: Request) -> SubmissionService:
    return request.app.state.submission_service


def get_place_importer(request: Request) -> PlaceImporter:
    return request.app.state.place_importer
