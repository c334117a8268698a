"""End-to-end tests for the command-line interface."""

import pytest

from resourceplan.cli import main

pytestmark = pytest.mark.integration


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'plan.db'}"


@pytest.fixture
def csv_dir(tmp_path):
    (tmp_path / "departments.csv").write_text("department_id,name\n1,Engineering\n")
    (tmp_path / "employees.csv").write_text(
        "employee_id,first_name,last_name,department_id,skills\n"
        '1,Alice,Smith,1,"Python, SQL"\n'
        "2,Bob,Jones,1,Java\n"
    )
    (tmp_path / "projects.csv").write_text(
        "project_id,name,department_ids\n1,Apollo,1\n2,Zephyr,1\n"
    )
    (tmp_path / "assignments.csv").write_text(
        "project_id,employee_id,week_start,assigned_hours\n"
        "1,1,2030-01-07,25\n"
        "2,1,2030-01-07,20\n"
    )
    return tmp_path


def test_import_then_report(db_url, csv_dir, capsys):
    assert main(["--db", db_url, "init-db"]) == 0
    assert main([
        "--db", db_url, "import-csv",
        "--departments", str(csv_dir / "departments.csv"),
        "--employees", str(csv_dir / "employees.csv"),
        "--projects", str(csv_dir / "projects.csv"),
        "--assignments", str(csv_dir / "assignments.csv"),
    ]) == 0
    out = capsys.readouterr().out
    assert "[OK] Imported 2 employees" in out
    assert "[OK] Imported 2 assignments" in out

    assert main(["--db", db_url, "conflicts", "--start", "2030-01-07", "--end", "2030-01-13"]) == 0
    out = capsys.readouterr().out
    assert "OverallocatedEmployee" in out
    assert "Alice Smith" in out
    assert "[OK] 1 conflicts" in out

    assert main(["--db", db_url, "match", "--project", "1", "--week", "2030-01-09", "--skills", "java"]) == 0
    out = capsys.readouterr().out
    assert "Bob Jones" in out
    assert "[OK] 1 candidates" in out

    timeline_csv = csv_dir / "timeline.csv"
    assert main(["--db", db_url, "timeline", "--start", "2030-01-07", "--weeks", "2",
                 "--out", str(timeline_csv)]) == 0
    assert "Engineering" in capsys.readouterr().out
    assert timeline_csv.exists()

    assert main(["--db", db_url, "export",
                 "--projects", str(csv_dir / "projects_out.csv"),
                 "--employees", str(csv_dir / "employees_out.csv")]) == 0
    out = capsys.readouterr().out
    assert "[OK] Exported 2 projects" in out
    assert "[OK] Exported 2 employees" in out


def test_domain_errors_exit_nonzero(db_url, capsys):
    main(["--db", db_url, "init-db"])
    capsys.readouterr()
    assert main(["--db", db_url, "timeline", "--weeks", "0"]) == 1
    assert "[ERROR] week_count" in capsys.readouterr().out


def test_import_error_reported_once(db_url, tmp_path, capsys):
    main(["--db", db_url, "init-db"])
    capsys.readouterr()
    bad = tmp_path / "employees.csv"
    bad.write_text("first_name,last_name\nA,B\n")
    assert main(["--db", db_url, "import-csv", "--employees", str(bad)]) == 1
    out = capsys.readouterr().out
    assert out.count("[ERROR]") == 1
    assert "missing columns" in out
