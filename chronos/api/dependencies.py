"""FastAPI dependency injection for services and settings.

The settings and infrastructure factory live on ``app.state``; they are
created by the application lifespan (or handed to ``create_app`` by tests).
"""

from typing import Annotated

from fastapi import Depends, Request

from chronos.application.services.pipeline import PipelineService
from chronos.application.services.recovery import RecoveryService
from chronos.application.services.retrieval import RetrievalService
from chronos.application.services.status import VideoStatusService
from chronos.commons.settings.models import Settings
from chronos.infrastructure.factory import InfrastructureFactory


def get_settings(request: Request) -> Settings:
    """Get the application settings."""
    return request.app.state.settings


def get_infrastructure_factory(request: Request) -> InfrastructureFactory:
    """Get the infrastructure factory created for this application."""
    return request.app.state.factory


def get_recovery_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RecoveryService:
    """Get the recovery service with all dependencies.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.

    Returns:
        Configured recovery service.
    """
    return RecoveryService(
        videos=factory.get_video_repository(),
        chunks=factory.get_chunk_repository(),
        dispatcher=factory.get_event_dispatcher(),
        settings=settings.recovery,
        stages=settings.stages,
    )


def get_status_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> VideoStatusService:
    return VideoStatusService(
        videos=factory.get_video_repository(),
        chunks=factory.get_chunk_repository(),
    )


def get_pipeline_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PipelineService:
    return PipelineService(
        videos=factory.get_video_repository(),
        chunks=factory.get_chunk_repository(),
        dispatcher=factory.get_event_dispatcher(),
        blob_storage=factory.get_blob_storage(),
        blob_settings=settings.blob_storage,
    )


def get_retrieval_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RetrievalService:
    """Get the retrieval engine for chat handlers.

    Costs are priced for the configured chat model and the embedding
    service's model.
    """
    return RetrievalService(
        embedder=factory.get_embedding_service(),
        chunks=factory.get_chunk_repository(),
        videos=factory.get_video_repository(),
        sessions=factory.get_chat_session_repository(),
        settings=settings.retrieval,
    )


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
RecoveryServiceDep = Annotated[RecoveryService, Depends(get_recovery_service)]
StatusServiceDep = Annotated[VideoStatusService, Depends(get_status_service)]
PipelineServiceDep = Annotated[PipelineService, Depends(get_pipeline_service)]
RetrievalServiceDep = Annotated[RetrievalService, Depends(get_retrieval_service)]
