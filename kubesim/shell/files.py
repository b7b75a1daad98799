"""
Virtual workspace files

The simulated home directory holds a few sample manifests that `ls`, `cat`
and `kubectl apply -f` operate on.
"""

from typing import Dict, Optional

DEPLOYMENT_YAML = """apiVersion: apps/v1
kind: Deployment
metadata:
  name: nginx-deployment
  labels:
    app: nginx
spec:
  replicas: 3
  selector:
    matchLabels:
      app: nginx
  template:
    metadata:
      labels:
        app: nginx
    spec:
      containers:
      - name: nginx
        image: nginx:1.25
        ports:
        - containerPort: 80"""

SERVICE_YAML = """apiVersion: v1
kind: Service
metadata:
  name: nginx-service
spec:
  selector:
    app: nginx
  ports:
  - port: 80
    targetPort: 80
  type: ClusterIP"""

CONFIGMAP_YAML = """apiVersion: v1
kind: ConfigMap
metadata:
  name: app-config
data:
  APP_ENV: production
  LOG_LEVEL: info"""

POD_YAML = """apiVersion: v1
kind: Pod
metadata:
  name: nginx-pod
  labels:
    app: nginx
spec:
  containers:
  - name: nginx
    image: nginx:alpine
    ports:
    - containerPort: 80"""

DEFAULT_FILES = {
    'deployment.yaml': DEPLOYMENT_YAML,
    'service.yaml': SERVICE_YAML,
    'configmap.yaml': CONFIGMAP_YAML,
    'pod.yaml': POD_YAML,
}


class Workspace:
    """Read-only set of files in the simulated working directory"""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files = dict(DEFAULT_FILES if files is None else files)

    def listing(self) -> str:
        return '  '.join(self.files)

    def read(self, name: str) -> Optional[str]:
        """File contents, or None if there is no such file"""
        if name.startswith('./'):
            name = name[2:]
        return self.files.get(name)
