"""Pytest configuration and shared fixtures."""

import logging
from pathlib import Path

import pytest

from compliance_engine.models import (
    RelationshipKind,
    Resource,
    ResourceGraphBuilder,
    ResourceKind,
    Rule,
    Severity,
)
from compliance_engine.services import (
    EvaluationEngine,
    GraphService,
    ReportService,
    RuleCatalog,
)

STACKS_DIR = Path(__file__).parent.parent / "examples" / "stacks"

SETTINGS_ENV_VARS = [
    "LOG_LEVEL",
    "ENVIRONMENT",
    "ENV",
    "ACTIVE_BASELINES",
    "FAILURE_THRESHOLD",
    "RULE_TABLE_PATH",
    "RULES_PATH",
    "EVALUATION_MAX_WORKERS",
    "MAX_WORKERS",
    "FAIL_ON_PREDICATE_ERROR",
    "REPORT_CACHE_SIZE",
]


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove settings variables from the environment and hide any local .env file."""
    for key in SETTINGS_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop stream handlers installed by configure_logging during a test."""
    yield
    logger = logging.getLogger("compliance_engine")
    for handler in list(logger.handlers):
        if getattr(handler, "_compliance_engine_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# =============================================================================
# Catalog and Service Fixtures
# =============================================================================


@pytest.fixture
def catalog():
    """The frozen built-in rule catalog."""
    return RuleCatalog.default()


@pytest.fixture
def engine(catalog):
    """Sequential evaluation engine over the built-in catalog."""
    return EvaluationEngine(catalog)


@pytest.fixture
def report_service():
    """Report service with the default MEDIUM failure threshold."""
    return ReportService()


@pytest.fixture
def graph_service():
    return GraphService()


@pytest.fixture
def make_rule():
    """Factory for ad-hoc rules with a given predicate."""

    def _make(
        rule_id="T.1",
        baseline="CIS",
        kind=ResourceKind.BUCKET,
        severity=Severity.MEDIUM,
        predicate=lambda resource, resolver: True,
        **kwargs,
    ):
        return Rule(
            id=rule_id,
            baseline=baseline,
            applicable_kind=kind,
            severity=severity,
            predicate=predicate,
            remediation_text=kwargs.pop("remediation_text", f"Fix {rule_id}"),
            **kwargs,
        )

    return _make


# =============================================================================
# Graph Fixtures
# =============================================================================


@pytest.fixture
def compliant_bucket():
    return Resource(
        id="bucket",
        kind=ResourceKind.BUCKET,
        attributes={
            "enforceSSL": True,
            "serverAccessLogsPrefix": "logs/",
            "lifecycleRules": [{"expiredObjectDeleteMarker": True}],
        },
    )


@pytest.fixture
def bucket_graph(compliant_bucket):
    """A compliant bucket notifying a topic."""
    return (
        ResourceGraphBuilder(name="BucketStack")
        .add_resource(compliant_bucket)
        .add_resource(
            Resource(
                id="topic",
                kind=ResourceKind.TOPIC,
                attributes={"masterKey": "alias/aws/sns", "loggingConfigs": [{"protocol": "lambda"}]},
            )
        )
        .connect("bucket", "topic", RelationshipKind.EVENT_NOTIFICATION)
        .build()
    )


@pytest.fixture
def control_graph(graph_service):
    return graph_service.load_graph(STACKS_DIR / "control_stack.json")


@pytest.fixture
def compliant_graph(graph_service):
    return graph_service.load_graph(STACKS_DIR / "compliant_stack.json")
