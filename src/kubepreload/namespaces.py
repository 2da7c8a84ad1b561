import time
from typing import Callable, Dict, List, Mapping, Optional

import pykube
import requests
from pykube.exceptions import HTTPError, PyKubeError

from kubepreload.constants import PRELOAD_NAMESPACE, PRELOAD_NAMESPACE_LABEL, PRELOAD_NAMESPACE_LABEL_VALUE, \
    PRELOAD_NAMESPACE_SELECTOR, CLEANUP_TIMEOUT, CLEANUP_POLL_INTERVAL
from kubepreload.exception import NamespaceCreateError, CleanupError
from kubepreload.logging import logger

_API_ERRORS = (PyKubeError, requests.RequestException)


def build_namespace_manifest(*,
                             name: str = PRELOAD_NAMESPACE,
                             labels: Optional[Mapping[str, str]] = None,
                             annotations: Optional[Mapping[str, str]] = None) -> Dict:
    namespace_labels = dict(labels or {})
    # The marker always wins, otherwise cleanup wouldn't find the namespace
    namespace_labels[PRELOAD_NAMESPACE_LABEL] = PRELOAD_NAMESPACE_LABEL_VALUE

    return {
        'apiVersion': 'v1',
        'kind': 'Namespace',
        'metadata': {
            'name': name,
            'labels': namespace_labels,
            'annotations': dict(annotations or {}),
        },
    }


def create_staging_namespace(api: pykube.HTTPClient,
                             labels: Optional[Mapping[str, str]] = None,
                             annotations: Optional[Mapping[str, str]] = None,
                             name: str = PRELOAD_NAMESPACE) -> pykube.Namespace:
    manifest = build_namespace_manifest(name=name, labels=labels, annotations=annotations)
    namespace = pykube.Namespace(api, manifest)
    logger.debug('Creating staging namespace {} with labels {}.'.format(name, manifest['metadata']['labels']))
    try:
        namespace.create()
    except _API_ERRORS as exception:
        raise NamespaceCreateError('Pre-load: Creation of namespace {} failed: {}'.format(name,
                                                                                          exception)) from exception
    return namespace


def _is_not_found(exception: Exception) -> bool:
    if isinstance(exception, HTTPError):
        return exception.code == 404
    if isinstance(exception, requests.HTTPError) and exception.response is not None:
        return exception.response.status_code == 404
    return False


def _delete_namespaces(namespaces: List[pykube.Namespace]) -> List[str]:
    """Deletes every namespace, returning one error message per failed deletion."""
    errors = []
    for namespace in namespaces:
        logger.info('Deleting namespace {}.'.format(namespace.name))
        try:
            namespace.delete()
        except _API_ERRORS as exception:
            # Another run sweeping the staging namespaces may have been faster
            if _is_not_found(exception):
                logger.debug('Namespace {} is already gone.'.format(namespace.name))
                continue
            logger.error('Deletion of namespace {} failed: {}'.format(namespace.name, exception))
            errors.append('{}: {}'.format(namespace.name, exception))
    return errors


def _remaining_namespace_names(api: pykube.HTTPClient, selector: str, names: List[str]) -> List[str]:
    return [
        namespace.name for namespace in pykube.Namespace.objects(api).filter(selector=selector) if namespace.name in names
    ]


def cleanup_staging_namespaces(api: pykube.HTTPClient,
                               selector: str = PRELOAD_NAMESPACE_SELECTOR,
                               timeout: float = CLEANUP_TIMEOUT,
                               poll_interval: float = CLEANUP_POLL_INTERVAL,
                               sleep: Callable[[float], None] = time.sleep) -> List[str]:
    """Deletes all namespaces matching selector and waits for them to go away.

    This isn't limited to the namespace created by the current run. A deletion failure doesn't stop the deletion of
    the other namespaces, all failures are reported together afterwards. Returns the names of the namespaces found.
    """
    deadline = time.monotonic() + timeout
    try:
        namespaces = list(pykube.Namespace.objects(api).filter(selector=selector))
    except _API_ERRORS as exception:
        raise CleanupError('Pre-load: Listing of namespaces with selector {} failed: {}'.format(
            selector, exception)) from exception

    names = [namespace.name for namespace in namespaces]
    errors = _delete_namespaces(namespaces)
    if errors:
        raise CleanupError('Pre-load: Deletion of namespaces with selector {} failed: {}'.format(
            selector, '; '.join(errors)))

    try:
        remaining = _remaining_namespace_names(api, selector, names) if names else []
        while remaining:
            if time.monotonic() >= deadline:
                raise CleanupError('Pre-load: Timeout waiting for namespace(s) {} to be deleted.'.format(
                    ', '.join(remaining)))
            logger.debug('Waiting for namespace(s) {} to be deleted.'.format(', '.join(remaining)))
            sleep(poll_interval)
            remaining = _remaining_namespace_names(api, selector, names)
    except _API_ERRORS as exception:
        raise CleanupError('Pre-load: Waiting for namespaces with selector {} to be deleted failed: {}'.format(
            selector, exception)) from exception

    return names
