# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Service container for dependency wiring.

This module provides a ServiceContainer that builds and holds the rule
catalog and all service instances from a single Settings object. It can
be used by a CLI, a CI step, a test suite, or any other entry point.
"""

import logging
from typing import Optional

from .config import Settings, settings as get_default_settings
from .services.compliance_service import ComplianceService
from .services.evaluation_engine import EvaluationEngine
from .services.graph_service import GraphService
from .services.report_service import ReportService
from .services.rule_catalog import RuleCatalog
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Wires together all services with proper dependency injection.

    Usage::

        container = ServiceContainer()          # uses default settings
        container.initialize()

        graph = container.graph_service.load_graph("stack.json")
        report = container.compliance_service.check_compliance(graph)

    Or with custom settings::

        container = ServiceContainer(settings=Settings(max_workers=4))
        container.initialize()
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Create a ServiceContainer.

        Args:
            settings: Application settings. If None, loads from environment
                      variables / .env file via the default ``settings()`` helper.
        """
        self._settings: Settings = settings or get_default_settings()
        self._initialized = False

        self._catalog: Optional[RuleCatalog] = None
        self._engine: Optional[EvaluationEngine] = None
        self._report_service: Optional[ReportService] = None
        self._graph_service: Optional[GraphService] = None
        self._compliance_service: Optional[ComplianceService] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """
        Initialize all services in dependency order.

        Unlike optional infrastructure, a broken rule table is fatal:
        errors from loading it propagate to the caller.
        """
        if self._initialized:
            logger.warning("ServiceContainer.initialize() called more than once")
            return

        s = self._settings
        configure_logging(s.log_level)
        logger.info(f"ServiceContainer: initializing services (environment={s.environment})")

        # 1. Rule catalog (frozen before anything evaluates against it)
        if s.rule_table_path:
            self._catalog = RuleCatalog.from_rule_table(s.rule_table_path)
            logger.info(f"ServiceContainer: rule catalog loaded (path={s.rule_table_path})")
        else:
            self._catalog = RuleCatalog.default()
            logger.info("ServiceContainer: built-in rule catalog loaded")

        # 2. Evaluation engine
        self._engine = EvaluationEngine(
            self._catalog,
            max_workers=s.max_workers,
            strict=s.fail_on_predicate_error,
        )
        logger.info(
            f"ServiceContainer: evaluation engine initialized "
            f"(max_workers={s.max_workers}, strict={s.fail_on_predicate_error})"
        )

        # 3. Reporting and loading
        self._report_service = ReportService(failure_threshold=s.failure_threshold)
        self._graph_service = GraphService()

        # 4. Compliance service (depends on engine + report service)
        self._compliance_service = ComplianceService(
            engine=self._engine,
            report_service=self._report_service,
            default_baselines=s.active_baselines,
            cache_size=s.report_cache_size,
        )

        self._initialized = True
        logger.info(
            f"ServiceContainer: initialization complete "
            f"({len(self._catalog)} rules, baselines={', '.join(s.active_baselines)})"
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _require(self, value, name: str):
        if not self._initialized or value is None:
            raise RuntimeError(f"ServiceContainer not initialized: {name} unavailable")
        return value

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def catalog(self) -> RuleCatalog:
        return self._require(self._catalog, "catalog")

    @property
    def engine(self) -> EvaluationEngine:
        return self._require(self._engine, "engine")

    @property
    def report_service(self) -> ReportService:
        return self._require(self._report_service, "report_service")

    @property
    def graph_service(self) -> GraphService:
        return self._require(self._graph_service, "graph_service")

    @property
    def compliance_service(self) -> ComplianceService:
        return self._require(self._compliance_service, "compliance_service")
