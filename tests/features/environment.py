#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

from shutil import rmtree


# -- CLEANUP FUNCTIONS:
def cleanup_topology_settings(context):
    if hasattr(context, "settings"):
        rmtree(context.settings.output_dir, ignore_errors=True)
        delattr(context, "settings")
    if hasattr(context, "graph"):
        delattr(context, "graph")


# -- HOOKS:
def before_scenario(context, scenario):
    print("CALLED-HOOK: before_scenario:%s" % scenario.name)


def after_scenario(context, scenario):
    print("CALLED-HOOK: after_scenario:%s" % scenario.name)
    cleanup_topology_settings(context)
