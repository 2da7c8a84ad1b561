from typing import Any, Dict, Mapping, Optional, Sequence

from kubepreload.constants import PRELOAD_APP_LABEL, PRELOAD_NAME, PRELOAD_SLEEP_IMAGE


def build_preload_workload(images: Sequence[str], node_selector: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Builds the manifest of the DaemonSet pulling the given images on every selected node.

    Each image is pulled by an init container which only echoes a completion message. A pause container keeps the pod
    around afterwards so that it isn't restarted until the DaemonSet is deleted together with its namespace.
    """
    init_containers = [{
        'name': 'container-{}'.format(index),
        'image': image,
        'imagePullPolicy': 'Always',
        'command': ['echo', 'init container-{} completed'.format(index)],
    } for index, image in enumerate(images)]

    return {
        'apiVersion': 'apps/v1',
        'kind': 'DaemonSet',
        'metadata': {
            'generateName': PRELOAD_NAME,
        },
        'spec': {
            'selector': {
                'matchLabels': {
                    PRELOAD_APP_LABEL: PRELOAD_NAME
                },
            },
            'template': {
                'metadata': {
                    'labels': {
                        PRELOAD_APP_LABEL: PRELOAD_NAME
                    },
                },
                'spec': {
                    'terminationGracePeriodSeconds': 0,
                    'initContainers': init_containers,
                    # DaemonSets only support the Always restart policy
                    'containers': [{
                        'name': 'sleep',
                        'image': PRELOAD_SLEEP_IMAGE,
                        'imagePullPolicy': 'Always',
                    }],
                    'nodeSelector': dict(node_selector or {}),
                },
            },
        },
    }
