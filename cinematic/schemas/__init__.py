"""Pydantic models for route media documents and edit errors.

Import models from their modules (``cinematic.schemas.route_media``,
``cinematic.schemas.envelope``); the exception hierarchy depends on the
envelope while the document models depend on the exceptions.
"""
