"""
DocScan request dependencies.

Every collaborator is built once per application and kept on app.state;
routers pull them out with these getters through Depends().
"""

from fastapi import Request

from app.core.config import Settings
from app.core.database import get_session_factory
from app.services.brief_search import BriefSearch, build_brief_search
from app.services.document_analyzer import DocumentAnalyzer
from app.services.document_classifier import KeywordClassifier
from app.services.document_profiles import ProfileRegistry, build_registry
from app.services.field_completeness import FieldCompletenessChecker
from app.services.learning_store import (
    InMemoryLearningRepository,
    LearningRepository,
    NullLearningRepository,
    SqlLearningRepository,
)
from app.services.legal_rules import SqlRuleRepository
from app.services.qa_formatter import QAFormatter
from app.services.text_extraction import build_text_extractor


def build_learning_repository(settings: Settings) -> LearningRepository:
    if settings.learning_backend == "sql":
        return SqlLearningRepository(get_session_factory(), history_limit=settings.learning_history_limit)
    if settings.learning_backend == "none":
        return NullLearningRepository()
    return InMemoryLearningRepository(limit=settings.learning_history_limit)


def install_services(state, settings: Settings) -> None:
    """Build the collaborators and attach them to app.state."""
    registry = build_registry(settings)
    learning = build_learning_repository(settings)

    state.registry = registry
    state.learning = learning
    state.analyzer = DocumentAnalyzer(
        registry,
        classifier=KeywordClassifier(registry, settings.classification_acceptance_threshold),
        extractor=build_text_extractor(settings),
        completeness_checker=FieldCompletenessChecker(settings.completeness_required_weight),
        learning=learning,
    )
    state.qa = QAFormatter(learning)
    state.rules = SqlRuleRepository(get_session_factory())
    state.brief_search = build_brief_search(settings, repository=state.rules)


def get_analyzer(request: Request) -> DocumentAnalyzer:
    return request.app.state.analyzer


def get_registry(request: Request) -> ProfileRegistry:
    return request.app.state.registry


def get_qa_formatter(request: Request) -> QAFormatter:
    return request.app.state.qa


def get_learning(request: Request) -> LearningRepository:
    return request.app.state.learning


def get_rule_repository(request: Request) -> SqlRuleRepository:
    return request.app.state.rules


def get_brief_search(request: Request) -> BriefSearch:
    return request.app.state.brief_search


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
