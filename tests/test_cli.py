"""
Tests for the command-line interface, run against JSON snapshots.
"""

import io
import json

import pytest

from adtree.config import get_config
from adtree.main import build_parser, main, main_memberof, run

from conftest import DOMAIN, dn


@pytest.fixture
def snapshot_path(tmp_path):
    data = {
        "domains": [DOMAIN],
        "objects": [
            {
                "name": "ADMINS",
                "sAMAccountName": "ADMINS",
                "distinguishedName": dn("ADMINS"),
                "objectGUID": "00000000-0000-0000-0000-000000000001",
                "objectCategory": "group",
            },
            {
                "name": "John Doe",
                "sAMAccountName": "jdoe",
                "distinguishedName": dn("John Doe", "OU=People"),
                "objectGUID": "00000000-0000-0000-0000-000000000002",
                "objectCategory": "person",
                "memberOf": [dn("ADMINS")],
            },
        ],
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_members_tree_is_printed_between_blank_lines(snapshot_path, capsys):
    exit_code = main(["ADMINS", DOMAIN, "--snapshot", snapshot_path, "--pipeable"])

    assert exit_code == 0
    assert capsys.readouterr().out == "\nEXAMPLE/ADMINS\n└── jdoe - John Doe\n\n"


def test_memberof_entry_point(snapshot_path, capsys):
    exit_code = main_memberof(["jdoe", DOMAIN, "--snapshot", snapshot_path, "--make-pipeable"])

    assert exit_code == 0
    assert capsys.readouterr().out == "\nEXAMPLE/John Doe\n└── EXAMPLE/ADMINS\n\n"


def test_object_not_found_exits_non_zero(snapshot_path, capsys):
    exit_code = main(["Nobody", DOMAIN, "--snapshot", snapshot_path, "--pipeable"])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.out == ""
    assert "Object 'Nobody' was not found" in captured.err


def test_unknown_domain_exits_non_zero(snapshot_path, capsys):
    exit_code = main(["ADMINS", "other.example.net", "--snapshot", snapshot_path, "--pipeable"])

    assert exit_code == 1
    assert "Could not resolve domain 'other.example.net'" in capsys.readouterr().err


def test_missing_snapshot_exits_non_zero(tmp_path, capsys):
    exit_code = main(["ADMINS", DOMAIN, "--snapshot", str(tmp_path / "none.json"), "--pipeable"])

    assert exit_code == 1
    assert "Snapshot file not found" in capsys.readouterr().err


def test_invalid_max_depth_exits_non_zero(snapshot_path, capsys):
    exit_code = main(["ADMINS", DOMAIN, "--snapshot", snapshot_path, "--max-depth", "0"])

    assert exit_code == 1
    assert "max_depth" in capsys.readouterr().err


def test_output_and_json_files(snapshot_path, tmp_path):
    text_path = tmp_path / "tree.txt"
    json_path = tmp_path / "tree.json"
    args = build_parser().parse_args([
        "ADMINS", DOMAIN,
        "--snapshot", snapshot_path,
        "--ascii",
        "-o", str(text_path),
        "--json", str(json_path),
    ])
    stdout = io.StringIO()

    assert run(args, stdout=stdout) == 0

    assert text_path.read_text(encoding="utf-8") == "\nEXAMPLE/ADMINS\n`-- jdoe - John Doe\n\n"
    exported = json.loads(json_path.read_text(encoding="utf-8"))
    assert exported["direction"] == "members"
    assert [node["name"] for node in exported["nodes"]] == ["ADMINS", "John Doe"]
    assert "\x1b" in stdout.getvalue()


def test_run_publishes_config(snapshot_path):
    args = build_parser().parse_args(["ADMINS", DOMAIN, "--snapshot", snapshot_path, "--full-cycle-check"])
    run(args, stdout=io.StringIO())

    assert get_config().traversal.cycle_check == "ancestors"
    assert get_config().output.pipeable is False
