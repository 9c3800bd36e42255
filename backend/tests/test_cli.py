from unittest.mock import patch

import pytest

from vendorscout import cli


def test_research_requires_a_category():
    with pytest.raises(SystemExit):
        cli.parse_args(["research", "--project-id", "p1", "--location", "Austin, TX"])


def test_sweep_arguments():
    args = cli.parse_args(
        [
            "sweep",
            "--project-id",
            "p1",
            "--location",
            "Austin, TX",
            "--zip-code",
            "78701",
            "--categories",
            "Architects, Plumbers",
            "--delay",
            "0",
        ]
    )
    assert args.command == "sweep"
    assert args.categories == "Architects, Plumbers"
    assert args.delay == 0.0
    assert args.zip_code == "78701"


def test_research_prints_progress(capsys, store, make_research, make_orchestrator, architect_research):
    orchestrator = make_orchestrator(store, make_research(architect_research))

    with patch.object(cli.VendorResearchOrchestrator, "from_settings", return_value=orchestrator):
        exit_code = cli.main(
            ["research", "--project-id", "p1", "--location", "Austin, TX", "--category", "architects"]
        )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "[100%] complete" in out
    assert len(store.vendors) == 2


def test_sweep_reports_each_category(capsys, store, make_research, make_orchestrator, architect_research):
    orchestrator = make_orchestrator(store, make_research(architect_research))

    with patch.object(cli.VendorResearchOrchestrator, "from_settings", return_value=orchestrator):
        exit_code = cli.main(
            [
                "sweep",
                "--project-id",
                "p1",
                "--location",
                "Austin, TX",
                "--categories",
                "architects,designers",
                "--delay",
                "0",
                "--json",
            ]
        )

    summaries = [line for line in capsys.readouterr().out.splitlines() if line.startswith("{")]
    assert exit_code == 0
    assert len(summaries) == 2
    assert '"inserted": 2' in summaries[0]
