import json
import sys
from typing import List, Optional

from prettytable import PrettyTable

from kubepreload import __version__
from kubepreload.config import Config
from kubepreload.images import extract_images
from kubepreload.job import jobs_from_config
from kubepreload.k8s import kubernetes_client
from kubepreload.logging import logger
from kubepreload.preload import PreLoader
from kubepreload.utils import parse_duration
from kubepreload.versions import VERSIONS


class Commands:
    """Proxy between CLI calls and the pre-load code."""

    def __init__(self, machine_output: bool, config: Config, kubeconfig: Optional[str] = None) -> None:
        self.machine_output = machine_output
        self.config = config
        self.kubeconfig = kubeconfig if kubeconfig is not None else config.get('kubeconfig', None)

    def _pre_loader(self) -> PreLoader:
        api = kubernetes_client(self.kubeconfig)
        cleanup_timeout = parse_duration(self.config.get('cleanupTimeout', '5m', types=str))
        return PreLoader(api, logger=logger, cleanup_timeout=cleanup_timeout)

    def preload(self, job_names: List[str]) -> None:
        jobs = jobs_from_config(self.config, job_names)
        self._pre_loader().preload_jobs(jobs)

    def images(self, job_names: List[str]) -> None:
        jobs = jobs_from_config(self.config, job_names)
        images_by_job = [(job.name, extract_images(job)) for job in jobs]

        if self.machine_output:
            json.dump({'jobs': [{
                'name': name,
                'images': images
            } for name, images in images_by_job]},
                      sys.stdout,
                      indent=2)
            sys.stdout.write('\n')
        else:
            table = PrettyTable()
            table.field_names = ['job', 'position', 'image']
            table.align['job'] = 'l'
            table.align['image'] = 'l'
            for name, images in images_by_job:
                for position, image in enumerate(images):
                    table.add_row([name, position, image])
            print(table)

    def cleanup(self) -> None:
        deleted = self._pre_loader().cleanup()
        if self.machine_output:
            json.dump({'namespaces': deleted}, sys.stdout, indent=2)
            sys.stdout.write('\n')
        elif not deleted:
            logger.info('No staging namespaces found.')

    def version_info(self) -> None:
        if not self.machine_output:
            logger.info('kube-preload version: {}.'.format(__version__))
            logger.info('Configuration version: {}, supported {}.'.format(VERSIONS.configuration.current,
                                                                          VERSIONS.configuration.supported))
        else:
            result = {
                'version': __version__,
                'configuration_version': {
                    'current': str(VERSIONS.configuration.current),
                    'supported': str(VERSIONS.configuration.supported),
                },
            }
            print(json.dumps(result, indent=4))
