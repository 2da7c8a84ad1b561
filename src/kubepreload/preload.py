import time
from typing import Callable, List, Sequence

import pykube
import requests
from pykube.exceptions import PyKubeError

from kubepreload.constants import PRELOAD_NAMESPACE, PRELOAD_NAMESPACE_SELECTOR, CLEANUP_TIMEOUT
from kubepreload.exception import WorkloadCreateError, CleanupError
from kubepreload.images import extract_images
from kubepreload.job import Job
from kubepreload.logging import logger as module_logger
from kubepreload.namespaces import create_staging_namespace, cleanup_staging_namespaces
from kubepreload.templates import render_template
from kubepreload.workload import build_preload_workload


class PreLoader:
    """Pulls the images used by a job onto all (selected) nodes before the job creates its objects.

    The sequence is: extract images, create the staging namespace, create the preload DaemonSet, sleep for the
    job's pre-load period and finally delete all staging namespaces. Nothing is verified: the pre-load period is
    expected to be long enough for the pulls to finish.
    """

    def __init__(self,
                 api: pykube.HTTPClient,
                 *,
                 logger=None,
                 render: Callable = render_template,
                 sleep: Callable[[float], None] = time.sleep,
                 namespace: str = PRELOAD_NAMESPACE,
                 cleanup_timeout: float = CLEANUP_TIMEOUT) -> None:
        self._api = api
        self._logger = logger if logger is not None else module_logger
        self._render = render
        self._sleep = sleep
        self._namespace = namespace
        self._cleanup_timeout = cleanup_timeout

    def _create_workload(self, images: Sequence[str], job: Job) -> pykube.DaemonSet:
        manifest = build_preload_workload(images, job.pre_load_node_labels)
        manifest['metadata']['namespace'] = self._namespace
        daemon_set = pykube.DaemonSet(self._api, manifest)
        try:
            daemon_set.create()
        except (PyKubeError, requests.RequestException) as exception:
            raise WorkloadCreateError('Pre-load: Creation of DaemonSet in namespace {} failed: {}'.format(
                self._namespace, exception)) from exception
        return daemon_set

    def cleanup(self) -> List[str]:
        return cleanup_staging_namespaces(self._api, selector=PRELOAD_NAMESPACE_SELECTOR, timeout=self._cleanup_timeout)

    def preload_images(self, job: Job) -> None:
        self._logger.info('Pre-load: images from job {}'.format(job.name))
        images = extract_images(job, render=self._render)
        if not images:
            self._logger.info('No images found to pre-load, continuing')
            return

        # A failure here is fatal, there is nothing to clean up yet
        create_staging_namespace(self._api,
                                 labels=job.namespace_labels,
                                 annotations=job.namespace_annotations,
                                 name=self._namespace)

        try:
            self._logger.info('Pre-load: Creating DaemonSet using images {} in namespace {}'.format(
                images, self._namespace))
            self._create_workload(images, job)
        except WorkloadCreateError:
            try:
                self.cleanup()
            except CleanupError as exception:
                self._logger.error(str(exception))
            raise

        self._logger.info('Pre-load: Sleeping for {}s'.format(job.pre_load_period))
        self._sleep(job.pre_load_period)
        self.cleanup()

    def preload_jobs(self, jobs: Sequence[Job]) -> None:
        """Runs the pre-load for every job which has it enabled, in order."""
        for job in jobs:
            if not job.pre_load_images:
                self._logger.debug('Pre-load is disabled for job {}, skipping.'.format(job.name))
                continue
            self.preload_images(job)
