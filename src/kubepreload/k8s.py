from typing import Optional

import pykube

from kubepreload.logging import logger


def kubernetes_client(kubeconfig: Optional[str] = None, timeout: Optional[float] = None) -> pykube.HTTPClient:
    """Returns a client for the cluster described by kubeconfig or by the environment.

    Without an explicit kubeconfig the in-cluster service account is used when available, otherwise $KUBECONFIG or
    ~/.kube/config.
    """
    if kubeconfig is not None:
        logger.debug('Using kubeconfig {}.'.format(kubeconfig))
        config = pykube.KubeConfig.from_file(kubeconfig)
    else:
        config = pykube.KubeConfig.from_env()

    if timeout is not None:
        return pykube.HTTPClient(config, timeout=timeout)
    return pykube.HTTPClient(config)
