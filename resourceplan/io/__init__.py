"""I/O utilities for CSV import/export."""

from .export_csv import defang, export_assignments_csv, export_conflicts_csv, export_timeline_csv
from .import_csv import (
    import_assignments_csv,
    import_departments_csv,
    import_employees_csv,
    import_projects_csv,
    import_requirements_csv,
)

__all__ = [
    "defang",
    "export_assignments_csv",
    "export_conflicts_csv",
    "export_timeline_csv",
    "import_assignments_csv",
    "import_departments_csv",
    "import_employees_csv",
    "import_projects_csv",
    "import_requirements_csv",
]
