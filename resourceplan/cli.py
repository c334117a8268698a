"""Command-line interface for the resource planner."""

from __future__ import annotations

import argparse
import logging
import sys

from resourceplan.config import PlanningConfig, load_config
from resourceplan.domain.db import get_session, init_database
from resourceplan.domain.repositories import (
    AssignmentRepository,
    DepartmentRepository,
    EmployeeRepository,
    ProjectRepository,
)
from resourceplan.engine.planner import ResourcePlanner
from resourceplan.errors import ResourcePlanError
from resourceplan.io.export_csv import (
    export_assignments_csv,
    export_conflicts_csv,
    export_employees_csv,
    export_projects_csv,
    export_timeline_csv,
)
from resourceplan.io.import_csv import (
    import_assignments_csv,
    import_departments_csv,
    import_employees_csv,
    import_projects_csv,
    import_requirements_csv,
)
from resourceplan.services.skills import SkillMatchRequest, parse_skills
from resourceplan.services.timeline import timeline_matrix


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format="%(levelname)s %(message)s")


def _load(args: argparse.Namespace) -> PlanningConfig:
    cfg = load_config(args.config)
    _configure_logging(args.log_level or cfg.logging_level)
    return cfg


def _db_url(args: argparse.Namespace, cfg: PlanningConfig) -> str:
    return args.db or cfg.database_url


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    cfg = _load(args)
    db_url = _db_url(args, cfg)
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import CSV data into database, parents before children."""
    cfg = _load(args)
    session = get_session(_db_url(args, cfg))
    try:
        if args.departments:
            count = import_departments_csv(session, args.departments)
            print(f"[OK] Imported {count} departments")
        if args.employees:
            count = import_employees_csv(session, args.employees)
            print(f"[OK] Imported {count} employees")
        if args.projects:
            count = import_projects_csv(session, args.projects)
            print(f"[OK] Imported {count} projects")
        if args.requirements:
            count = import_requirements_csv(session, args.requirements, cfg.hours)
            print(f"[OK] Imported {count} labor requirements")
        if args.assignments:
            count = import_assignments_csv(session, args.assignments, cfg.hours)
            print(f"[OK] Imported {count} assignments")
        print("[OK] CSV import complete")
    except Exception:
        # main() reports the error
        session.rollback()
        raise
    finally:
        session.close()


def _cmd_conflicts(args: argparse.Namespace) -> None:
    """Print ranked conflicts."""
    cfg = _load(args)
    session = get_session(_db_url(args, cfg))
    try:
        planner = ResourcePlanner(session, cfg)
        conflicts = planner.get_conflicts(start_week=args.start, end_week=args.end)
        for c in conflicts:
            print(
                f"{c.priority.value:<6} {c.conflict_type.value:<20} {c.week_start.isoformat()} "
                f"{c.entity_name}: {c.description}"
            )
        print(f"[OK] {len(conflicts)} conflicts")
    finally:
        session.close()


def _cmd_timeline(args: argparse.Namespace) -> None:
    """Print the department x week utilization matrix."""
    cfg = _load(args)
    session = get_session(_db_url(args, cfg))
    try:
        planner = ResourcePlanner(session, cfg)
        entries = planner.get_resource_timeline(args.start, args.weeks)
        matrix = timeline_matrix(entries)
        if matrix.empty:
            print("[OK] No active departments")
            return
        print(matrix.to_string())
        if args.out:
            export_timeline_csv(entries, args.out)
            print(f"[OK] Timeline written to {args.out}")
    finally:
        session.close()


def _cmd_match(args: argparse.Namespace) -> None:
    """Rank employees for a project week by skill match."""
    cfg = _load(args)
    session = get_session(_db_url(args, cfg))
    try:
        planner = ResourcePlanner(session, cfg)
        request = SkillMatchRequest(
            project_id=args.project,
            week_start=args.week,
            department_id=args.department,
            required_skills=parse_skills(args.skills),
            min_available_hours=args.min_hours,
        )
        matches = planner.find_skill_matches(request)
        for m in matches[: args.limit]:
            print(
                f"{m.match_percentage:5.1f}%  {m.employee_name:<25} {m.department_name:<15} "
                f"avail={m.available_hours:g}h  matched={', '.join(m.matched_skills)}"
            )
        print(f"[OK] {len(matches)} candidates")
    finally:
        session.close()


def _cmd_export(args: argparse.Namespace) -> None:
    """Export data from database to CSV."""
    cfg = _load(args)
    session = get_session(_db_url(args, cfg))
    try:
        planner = ResourcePlanner(session, cfg)
        employees = EmployeeRepository.get_all(session)
        departments = DepartmentRepository.get_all(session)
        if args.projects:
            count = export_projects_csv(ProjectRepository.get_all(session), departments, args.projects)
            print(f"[OK] Exported {count} projects to {args.projects}")
        if args.employees:
            count = export_employees_csv(employees, departments, args.employees)
            print(f"[OK] Exported {count} employees to {args.employees}")
        if args.assignments:
            count = export_assignments_csv(
                AssignmentRepository.get_all(session),
                employees,
                ProjectRepository.get_all(session),
                departments,
                args.assignments,
            )
            print(f"[OK] Exported {count} assignments to {args.assignments}")
        if args.conflicts:
            count = export_conflicts_csv(planner.get_conflicts(), employees, args.conflicts)
            print(f"[OK] Exported {count} conflicts to {args.conflicts}")
        if args.timeline:
            count = export_timeline_csv(planner.get_resource_timeline(args.start, args.weeks), args.timeline)
            print(f"[OK] Exported timeline for {count} departments to {args.timeline}")
    finally:
        session.close()


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="resourceplan",
        description="Weekly resource allocation and conflict detection",
    )

    # Global options
    parser.add_argument("--db", help="Database URL (default: from config, else sqlite:///resourceplan.db)")
    parser.add_argument("--config", help="Path to config YAML or JSON")
    parser.add_argument("--log-level", help="Override the configured logging level")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--departments", help="Path to departments CSV")
    imp.add_argument("--employees", help="Path to employees CSV")
    imp.add_argument("--projects", help="Path to projects CSV")
    imp.add_argument("--requirements", help="Path to labor requirements CSV")
    imp.add_argument("--assignments", help="Path to assignments CSV")
    imp.set_defaults(func=_cmd_import_csv)

    con = sub.add_parser("conflicts", help="List ranked conflicts")
    con.add_argument("--start", help="First week for overallocation checks (any date)")
    con.add_argument("--end", help="Last week for overallocation checks (any date)")
    con.set_defaults(func=_cmd_conflicts)

    tl = sub.add_parser("timeline", help="Show department utilization by week")
    tl.add_argument("--start", help="Start week (any date, default: current week)")
    tl.add_argument("--weeks", type=int, default=None, help="Number of weeks (1-52)")
    tl.add_argument("--out", help="Optional: export matrix to CSV")
    tl.set_defaults(func=_cmd_timeline)

    match = sub.add_parser("match", help="Find employees for a project week by skills")
    match.add_argument("--project", type=int, required=True, help="Project ID")
    match.add_argument("--week", required=True, help="Week (any date in it)")
    match.add_argument("--department", type=int, help="Restrict to one department")
    match.add_argument("--skills", default="", help="Comma separated skills")
    match.add_argument("--min-hours", type=float, default=0.0, help="Minimum available hours")
    match.add_argument("--limit", type=int, default=20, help="Rows to print")
    match.set_defaults(func=_cmd_match)

    exp = sub.add_parser("export", help="Export data from database to CSV")
    exp.add_argument("--projects", help="Path to export active projects CSV")
    exp.add_argument("--employees", help="Path to export employees CSV")
    exp.add_argument("--assignments", help="Path to export assignments CSV")
    exp.add_argument("--conflicts", help="Path to export overallocation conflicts CSV")
    exp.add_argument("--timeline", help="Path to export timeline matrix CSV")
    exp.add_argument("--start", help="Timeline start week (default: current week)")
    exp.add_argument("--weeks", type=int, default=None, help="Timeline week count (1-52)")
    exp.set_defaults(func=_cmd_export)

    args = parser.parse_args(argv)
    try:
        args.func(args)
    except ResourcePlanError as e:
        print(f"[ERROR] {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
