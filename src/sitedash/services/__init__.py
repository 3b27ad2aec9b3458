from .api_client import ApiClient, EntityClient
from .mock import DemoProjectsClient, DemoResourcesClient, DemoTasksClient
from .projects import ProjectsClient
from .resources import ResourcesClient
from .tasks import TasksClient

__all__ = [
    "ApiClient",
    "EntityClient",
    "ProjectsClient",
    "TasksClient",
    "ResourcesClient",
    "DemoProjectsClient",
    "DemoTasksClient",
    "DemoResourcesClient",
]
