#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to write the planned graph and the rendered template to the local filesystem
"""

from __future__ import annotations

import json
from os import makedirs, path

import yaml

try:
    from yaml import CSafeDumper as Dumper
except ImportError:
    from yaml import SafeDumper as Dumper

from troposphere import Template

from ecs_topology.common.logging import LOG

JSON_MIME = "application/json"
YAML_MIME = "application/x-yaml"


class FileArtifact:
    """
    Class to handle files artifacts, the resource graph or the CloudFormation template,
    and write them to the local filesystem.

    :cvar str body: The content of the FileArtifact
    :cvar str file_name: the base name of the file
    :cvar str mime: MIME-type of the file
    :cvar str output_dir: Path to the local directory to output the file to.
    :cvar str file_path: Output file path for the FileArtifact
    """

    def __init__(self, file_name, settings, file_format=None, template=None, content=None):
        """
        Init method for FileArtifact

        :param str file_name: Name of the file, without extension. Mandatory
        :param ecs_topology.common.settings.TopologySettings settings:
        :param str file_format: json or yaml. Defaults to the settings format
        :param troposphere.Template template: If you are providing a template to generate
        :param dict content: If you are providing plain content to generate
        """
        if file_format is None:
            file_format = settings.format
        if template is not None and not isinstance(template, Template):
            raise TypeError("template must be of type", Template, "got", type(template))
        if template is None and not isinstance(content, (dict, list)):
            raise TypeError("content must be of type", dict, list, "Got", type(content))
        self.template = template
        self.content = content
        self.file_format = file_format
        self.mime = JSON_MIME if file_format == "json" else YAML_MIME
        self.file_name = f"{file_name}.{file_format}"
        self.output_dir = settings.output_dir
        self.file_path = path.abspath(f"{self.output_dir}/{self.file_name}")
        self.body = self.define_body()

    def define_body(self) -> str:
        if self.template is not None:
            return self.template.to_json() if self.file_format == "json" else self.template.to_yaml()
        if self.file_format == "json":
            return json.dumps(self.content, indent=2)
        return yaml.dump(self.content, Dumper=Dumper, sort_keys=False)

    def write(self) -> str:
        """
        Writes the body to the output directory, creating it if necessary

        :return: the path to the file written
        """
        makedirs(self.output_dir, exist_ok=True)
        with open(self.file_path, "w") as file_fd:
            file_fd.write(self.body)
        LOG.info(f"{self.file_name} written to {self.file_path}")
        return self.file_path
