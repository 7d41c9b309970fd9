# chess_viewer/containers.py
"""
Defines the Dependency Injection (DI) container for the application.

This module uses the `punq` library to manage the creation and wiring of the
viewer's services: the file and HTTP adapters, the engine analysis session and
the document state that owns it. Nothing here starts a process or opens a
connection; the caller decides when to `initialize` the session.
"""

import punq

from chess_viewer.config.settings import AnalysisSettings, EngineSettings, ImporterSettings, Settings
from chess_viewer.services.analysis_session import EngineAnalysisSession
from chess_viewer.services.pgn_service import PgnService
from chess_viewer.services.platform_importer import PlatformImporter
from chess_viewer.services.uci_engine import make_engine_factory
from chess_viewer.state.document_state import DocumentState


def get_container(settings: Settings) -> punq.Container:
    """
    Initializes and returns a DI container configured from `settings`.
    """
    container = punq.Container()

    # Register instances that are created outside the container's control.
    container.register(Settings, instance=settings)
    container.register(EngineSettings, instance=settings.engine)
    container.register(AnalysisSettings, instance=settings.analysis)
    container.register(ImporterSettings, instance=settings.importer)

    container.register(PgnService, scope=punq.Scope.singleton)
    container.register(
        PlatformImporter, factory=lambda: PlatformImporter(settings.importer), scope=punq.Scope.singleton
    )

    # One engine per document: the session is owned by the DocumentState that resolves it.
    container.register(
        EngineAnalysisSession,
        factory=lambda: EngineAnalysisSession(
            make_engine_factory(settings.engine), settings.engine, settings.analysis
        ),
    )
    container.register(
        DocumentState,
        factory=lambda: DocumentState(container.resolve(EngineAnalysisSession), settings.analysis),
    )

    return container
