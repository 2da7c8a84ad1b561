import enum
from typing import Any, Callable, Dict, List, Optional

from kubepreload.utils import key_get


class WorkloadKind(enum.Enum):
    DEPLOYMENT = 'Deployment'
    DAEMON_SET = 'DaemonSet'
    REPLICA_SET = 'ReplicaSet'
    JOB = 'Job'
    STATEFUL_SET = 'StatefulSet'
    POD = 'Pod'
    VIRTUAL_MACHINE_INSTANCE = 'VirtualMachineInstance'
    VIRTUAL_MACHINE = 'VirtualMachine'
    VIRTUAL_MACHINE_INSTANCE_REPLICA_SET = 'VirtualMachineInstanceReplicaSet'

    @classmethod
    def from_document(cls, document: Any) -> Optional['WorkloadKind']:
        """Returns the kind declared by a rendered document or None if it isn't one we know about."""
        if not isinstance(document, dict):
            return None
        try:
            return cls(document.get('kind'))
        except ValueError:
            return None

    def extract_images(self, document: Dict[str, Any]) -> List[str]:
        return _EXTRACTORS[self](document)


def _list_at(document: Dict[str, Any], key: str) -> List[Any]:
    value = key_get(document, key, None)
    return value if isinstance(value, list) else []


def _image_of(item: Any, key: str) -> str:
    image = key_get(item, key, None) if isinstance(item, dict) else None
    return '' if image is None else str(image)


def _nested_pod_images(document: Dict[str, Any]) -> List[str]:
    # Empty image fields are kept for kinds wrapping a pod template
    return [_image_of(container, 'image') for container in _list_at(document, 'spec.template.spec.containers')]


def _pod_images(document: Dict[str, Any]) -> List[str]:
    images = [_image_of(container, 'image') for container in _list_at(document, 'spec.containers')]
    return [image for image in images if image != '']


def _container_disk_images(volumes: List[Any]) -> List[str]:
    images = [_image_of(volume, 'containerDisk.image') for volume in volumes]
    return [image for image in images if image != '']


def _vmi_images(document: Dict[str, Any]) -> List[str]:
    return _container_disk_images(_list_at(document, 'spec.volumes'))


def _nested_vmi_images(document: Dict[str, Any]) -> List[str]:
    return _container_disk_images(_list_at(document, 'spec.template.spec.volumes'))


_EXTRACTORS: Dict[WorkloadKind, Callable[[Dict[str, Any]], List[str]]] = {
    WorkloadKind.DEPLOYMENT: _nested_pod_images,
    WorkloadKind.DAEMON_SET: _nested_pod_images,
    WorkloadKind.REPLICA_SET: _nested_pod_images,
    WorkloadKind.JOB: _nested_pod_images,
    WorkloadKind.STATEFUL_SET: _nested_pod_images,
    WorkloadKind.POD: _pod_images,
    WorkloadKind.VIRTUAL_MACHINE_INSTANCE: _vmi_images,
    WorkloadKind.VIRTUAL_MACHINE: _nested_vmi_images,
    WorkloadKind.VIRTUAL_MACHINE_INSTANCE_REPLICA_SET: _nested_vmi_images,
}
