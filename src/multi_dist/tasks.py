"""
multi-dist Task Collection
"""

from invoke import Collection

from .build.config.logging import bootstrap_logging
from .build.tasks import config_show, plan, vendor

bootstrap_logging('multi_dist')

# Create namespace and collect tasks from each submodule
namespace = Collection()

for submodule in [config_show, plan, vendor]:
    submodule_collection = Collection.from_module(submodule)
    for task_name, task in submodule_collection.tasks.items():
        namespace.add_task(task)
