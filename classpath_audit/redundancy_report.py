"""Logic for generating reports on redundant class path entries."""

import json
import time
from pathlib import Path
from typing import Any

from classpath_audit.class_collector import ClassCollector
from classpath_audit.class_definition import ClassDefinition
from classpath_audit.definition_diff import diff_definitions
from classpath_audit.enumerate_sources import loader_label
from classpath_audit.find_redundant import is_class_entry
from classpath_audit.models import Observation

SCHEMA_VERSION = 1


class RedundancyReport:
    """Summarizes a finished analysis as JSON."""

    def __init__(
        self,
        collector: ClassCollector,
        config_hash: str,
        *,
        include_constant_pool: bool = False,
        include_index: bool = False,
    ) -> None:
        """Initialize the report for an analyzed collector."""
        self.collector = collector
        self.config_hash = config_hash
        self.include_constant_pool = include_constant_pool
        self.include_index = include_index
        self.start_time = time.time()

    def build(self) -> dict[str, Any]:
        """Return the report as plain data."""
        sources = self.collector.get_sources()
        redundant = self.collector.get_redundant()
        report: dict[str, Any] = {
            "meta": {
                "timestamp": time.time(),
                "duration": time.time() - self.start_time,
                "config_hash": self.config_hash,
                "schema_version": SCHEMA_VERSION,
                "total_sources": len(sources),
                "total_redundant": len(redundant),
            },
            "sources": [
                {
                    "locator": s.locator,
                    "kind": s.kind.value,
                    "loader": loader_label(s.loader),
                }
                for s in sources
            ],
            "redundant": [
                self._entry_record(name, observations)
                for name, observations in redundant.items()
            ],
            "stats": self._compute_stats(),
        }
        if self.include_index:
            report["index"] = {
                name: [o.source.locator for o in observations]
                for name, observations in self.collector.get_index().items()
            }
        return report

    def generate_report(self, path: str) -> None:
        """Write the report to a JSON file."""
        Path(path).write_text(json.dumps(self.build(), indent=2), encoding="utf-8")

    def _entry_record(
        self, entry_name: str, observations: list[Observation]
    ) -> dict[str, Any]:
        # The first observation is the one the loader chain actually uses.
        effective = observations[0].definition
        records = []
        for position, observation in enumerate(observations):
            record = self._observation_record(observation)
            record["effective"] = position == 0
            definition = observation.definition
            if position > 0 and effective is not None and definition is not None:
                record["diff"] = diff_definitions(effective, definition).to_dict()
            records.append(record)

        digests = {o.definition.digest for o in observations if o.definition}
        return {
            "entry": entry_name,
            "copies": len(observations),
            "distinct_bytes": len(digests),
            "observations": records,
        }

    def _observation_record(self, observation: Observation) -> dict[str, Any]:
        record: dict[str, Any] = {
            "locator": observation.source.locator,
            "loader": loader_label(observation.source.loader),
            "resolved": observation.resolved,
            "definition": None,
        }
        if observation.definition is not None:
            record["definition"] = self._definition_record(observation.definition)
        return record

    def _definition_record(self, definition: ClassDefinition) -> dict[str, Any]:
        record: dict[str, Any] = {
            "name": definition.name,
            "digest": definition.digest,
            "size": len(definition.data),
            "version": definition.version,
            "access_flags": definition.access_flags,
            "super": definition.super_name,
            "interfaces": definition.interface_names,
            "fields": [f.signature for f in definition.fields],
            "methods": [m.signature for m in definition.methods],
            "source_file": definition.source_file,
            "unresolved_references": definition.unresolved_references,
        }
        if self.include_constant_pool:
            record["constant_pool"] = definition.constant_strings()
        return record

    def _compute_stats(self) -> dict[str, Any]:
        sources = self.collector.get_sources()
        index = self.collector.get_index()
        redundant = self.collector.get_redundant()

        kind_counts: dict[str, int] = {}
        for s in sources:
            kind_counts[s.kind.value] = kind_counts.get(s.kind.value, 0) + 1

        divergent = 0
        unreadable = 0
        for observations in redundant.values():
            digests = {o.definition.digest for o in observations if o.definition}
            if len(digests) > 1:
                divergent += 1
            unreadable += sum(
                1 for o in observations if o.resolved and o.definition is None
            )

        # Redundant entries per source, to point at the worst offenders.
        shadowing: dict[str, int] = {}
        for observations in redundant.values():
            for o in observations:
                shadowing[o.source.locator] = shadowing.get(o.source.locator, 0) + 1

        return {
            "source_kinds": kind_counts,
            "total_entries": len(index),
            "class_entries": sum(1 for name in index if is_class_entry(name)),
            "redundant_classes": len(redundant),
            "divergent_classes": divergent,
            "unreadable_observations": unreadable,
            "max_copies": max((len(o) for o in redundant.values()), default=0),
            "redundant_per_source": shadowing,
        }
