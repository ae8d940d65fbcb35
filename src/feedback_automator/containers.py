"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from feedback_automator.adapters.erp_client import ErpClient, HttpxErpClient
from feedback_automator.config import Settings
from feedback_automator.services.auth import AuthService
from feedback_automator.services.context import ContextResolver
from feedback_automator.services.pipeline import AutomationPipeline
from feedback_automator.services.submission import SubmissionEngine


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    erp_client: ErpClient
    auth_service: AuthService
    pipeline: AutomationPipeline
    close_resources: Callable[[], Awaitable[None]]


def build_pipeline(settings: Settings, erp_client: ErpClient) -> AutomationPipeline:
    """Assemble the automation pipeline around an ERP client."""
    return AutomationPipeline(
        client=erp_client,
        auth_service=AuthService(erp_client, database=settings.erp_database),
        context_resolver=ContextResolver(
            page_size=settings.pending_page_size,
            strict=settings.strict_group_resolution,
        ),
        submission_engine=SubmissionEngine(),
        feedback_model=settings.feedback_model,
        lang=settings.erp_lang,
        timezone=settings.erp_timezone,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    erp_client = HttpxErpClient.create(
        resolved_settings.erp_base_url,
        timeout=resolved_settings.request_timeout_seconds,
    )
    pipeline = build_pipeline(resolved_settings, erp_client)

    async def close_resources() -> None:
        await erp_client.close()

    return AppContainer(
        settings=resolved_settings,
        erp_client=erp_client,
        auth_service=pipeline.auth_service,
        pipeline=pipeline,
        close_resources=close_resources,
    )
