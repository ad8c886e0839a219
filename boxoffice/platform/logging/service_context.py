"""
Service context extraction for distributed logging.

Identifies the emitting process in aggregated logs as `service@env:instance`.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'boxoffice')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Container hostname in k8s/ECS, PID locally
    instance = os.getenv('HOSTNAME', '')[:12] or str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance}'
