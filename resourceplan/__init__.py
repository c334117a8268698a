"""Weekly resource allocation and conflict detection engine.

Modules:
- weeks: Monday week keys shared by every component
- config: load and validate planning policy (YAML or JSON)
- errors: exception types
- domain: SQLAlchemy models, session helpers and repositories
- services: assignment ledger, requirement store, utilization, conflicts,
  skill matching, timeline, reporting and templates
- engine: ResourcePlanner facade
- io: CSV import/export
- cli: command-line interface entrypoints
"""

__version__ = "0.1.0"

__all__ = [
    "weeks",
    "config",
    "errors",
    "domain",
    "services",
    "engine",
    "io",
    "cli",
]
