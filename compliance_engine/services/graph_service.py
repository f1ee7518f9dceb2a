# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Graph service for loading resource graph documents."""

import json
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models import ResourceGraph

logger = logging.getLogger(__name__)


class GraphValidationError(Exception):
    """Raised when a graph document cannot be parsed or is malformed."""

    pass


class GraphNotFoundError(Exception):
    """Raised when a graph document is not found."""

    pass


class GraphService:
    """
    Service for loading resource graphs from JSON or YAML documents.

    A graph document has the shape::

        {
          "name": "CompliantStack",
          "resources": [{"id": "bucket", "kind": "Bucket", "attributes": {...}}],
          "relationships": [{"source_id": "bucket", "target_id": "topic",
                             "kind": "EventNotification"}]
        }

    Integrity errors (duplicate ids, unresolved or invalid relationships)
    propagate as GraphBuildError so callers can tell a bad document from a
    bad graph.
    """

    def load_graph(self, path: str | Path) -> ResourceGraph:
        """
        Load and build a graph from a document on disk.

        Args:
            path: Path to a .json, .yaml or .yml graph document

        Returns:
            The built, immutable ResourceGraph

        Raises:
            GraphNotFoundError: If the file doesn't exist
            GraphValidationError: If the document is not valid JSON/YAML or
                                  a resource/relationship is malformed
            GraphBuildError: If the graph fails integrity validation
        """
        path = Path(path)
        if not path.exists():
            raise GraphNotFoundError(f"Graph document not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except json.JSONDecodeError as e:
            raise GraphValidationError(f"Invalid JSON in graph document {path}: {e}") from e
        except yaml.YAMLError as e:
            raise GraphValidationError(f"Invalid YAML in graph document {path}: {e}") from e

        graph = self.parse_graph(data, source=str(path))
        logger.info(
            f"Loaded graph '{graph.name or path.stem}' from {path}: "
            f"{len(graph.resources)} resources, {len(graph.relationships)} relationships"
        )
        return graph

    def parse_graph(self, data: object, source: str = "<document>") -> ResourceGraph:
        """
        Build a graph from an already parsed document.

        Raises:
            GraphValidationError: If the document structure is invalid
            GraphBuildError: If the graph fails integrity validation
        """
        if not isinstance(data, dict):
            raise GraphValidationError(f"Graph document {source} must be a mapping")
        for key in ("resources", "relationships"):
            if key in data and not isinstance(data[key], list):
                raise GraphValidationError(f"'{key}' in graph document {source} must be a list")

        try:
            return ResourceGraph.from_dict(data)
        except ValidationError as e:
            raise GraphValidationError(f"Invalid graph structure in {source}: {e}") from e
