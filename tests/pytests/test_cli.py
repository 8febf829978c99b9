#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json
from os import path

from ecs_topology.cli import main


def test_render(use_cases, tmp_path):
    status = main(
        [
            "render",
            "-n",
            "frontends",
            "-f",
            path.join(use_cases, "services.yml"),
            "-d",
            str(tmp_path),
        ]
    )
    assert status == 0
    with open(tmp_path / "frontends.graph.json") as graph_fd:
        graph = json.load(graph_fd)
    assert graph["Nodes"][0]["Name"] == "network"
    with open(tmp_path / "frontends.template.json") as template_fd:
        template = json.load(template_fd)
    assert "Listener" in template["Resources"]


def test_render_yaml(use_cases, tmp_path):
    assert (
        main(
            [
                "render",
                "-n",
                "frontends",
                "-f",
                path.join(use_cases, "services.yml"),
                "-d",
                str(tmp_path),
                "--format",
                "yaml",
            ]
        )
        == 0
    )
    assert (tmp_path / "frontends.template.yaml").exists()
    assert (tmp_path / "frontends.graph.yaml").exists()


def test_validate(use_cases):
    assert main(["validate", "-f", path.join(use_cases, "services.yml")]) == 0
    assert main(["validate", "-f", path.join(use_cases, "no_default.yml")]) == 0


def test_validate_errors(use_cases):
    for file_name in (
        "two_defaults.yml",
        "duplicate_priority.yml",
        "zero_port.yml",
        "invalid_ttl.yml",
    ):
        assert main(["validate", "-f", path.join(use_cases, file_name)]) == 1


def test_no_arguments():
    assert main([]) == 0


def test_invalid_record_name(tmp_path):
    input_file = tmp_path / "dot_record.yml"
    input_file.write_text(
        "Dns:\n"
        "  Zone: example.com\n"
        "  RecordName: '.'\n"
        "Services:\n"
        "  - Name: main\n"
        "    Image: arn:aws:ecr:us-east-1:123456789012:repository/container-app\n"
        "    Port: 9000\n"
    )
    assert main(["validate", "-f", str(input_file)]) == 1
