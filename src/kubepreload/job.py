import os
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from kubepreload.config import Config, ConfigDict
from kubepreload.exception import ConfigurationError, UsageError
from kubepreload.logging import logger
from kubepreload.utils import parse_duration


class ObjectDefinition(NamedTuple):
    object_template: str
    object_spec: str
    input_vars: Optional[Dict[str, Any]] = None
    replicas: int = 1


class Job(NamedTuple):
    name: str
    objects: List[ObjectDefinition]
    namespace: Optional[str] = None
    pre_load_images: bool = False
    pre_load_period: float = 60.0
    namespace_labels: Optional[Dict[str, str]] = None
    namespace_annotations: Optional[Dict[str, str]] = None
    pre_load_node_labels: Optional[Dict[str, str]] = None
    function_templates: Optional[List[str]] = None


def _read_template(path: str, base_directory: str) -> str:
    full_path = path if os.path.isabs(path) else os.path.join(base_directory, path)
    try:
        with open(full_path, 'r', encoding='utf-8') as f:
            return f.read()
    except OSError as exception:
        raise ConfigurationError('Template {} could not be read: {}.'.format(full_path, exception)) from exception


def _parse_duration(value: str, full_name: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as exception:
        raise ConfigurationError('Config option {} is invalid: {}'.format(full_name, exception)) from exception


def job_from_config(job_config: ConfigDict, base_directory: str) -> Job:
    name = Config.get_from_dict(job_config, 'name', types=str)
    objects = []
    for index, object_config in enumerate(Config.get_from_dict(job_config, 'objects', [], types=list)):
        object_template = Config.get_from_dict(object_config,
                                               'objectTemplate',
                                               types=str,
                                               full_name_override='{}.objects'.format(job_config.full_name),
                                               index=index)
        objects.append(
            ObjectDefinition(object_template=object_template,
                             object_spec=_read_template(object_template, base_directory),
                             input_vars=dict(object_config.get('inputVars', {})),
                             replicas=object_config.get('replicas', 1)))

    function_templates = [
        _read_template(path, base_directory)
        for path in Config.get_from_dict(job_config, 'functionTemplates', [], types=list)
    ]

    job = Job(name=name,
              objects=objects,
              namespace=Config.get_from_dict(job_config, 'namespace', None),
              pre_load_images=Config.get_from_dict(job_config, 'preLoadImages', False, types=bool),
              pre_load_period=_parse_duration(Config.get_from_dict(job_config, 'preLoadPeriod', '1m', types=str),
                                              '{}.preLoadPeriod'.format(job_config.full_name)),
              namespace_labels=dict(Config.get_from_dict(job_config, 'namespaceLabels', {}, types=dict)),
              namespace_annotations=dict(Config.get_from_dict(job_config, 'namespaceAnnotations', {}, types=dict)),
              pre_load_node_labels=dict(Config.get_from_dict(job_config, 'preLoadNodeLabels', {}, types=dict)),
              function_templates=function_templates)
    logger.debug('Loaded job {} with {} object(s).'.format(job.name, len(job.objects)))
    return job


def jobs_from_config(config: Config, names: Sequence[str] = None) -> List[Job]:
    """Returns the configured jobs in configuration order, optionally limited to the given names."""
    jobs_config = config.get('jobs', types=list)

    known_names = [job_config['name'] for job_config in jobs_config]
    if names:
        unknown_names = [name for name in names if name not in known_names]
        if unknown_names:
            raise UsageError('Unknown job(s): {}.'.format(', '.join(unknown_names)))

    jobs = []
    for index, job_config in enumerate(jobs_config):
        if names and job_config['name'] not in names:
            continue
        job_config = ConfigDict(job_config)
        job_config.full_name = 'jobs.{}'.format(index)
        jobs.append(job_from_config(job_config, config.base_directory))

    return jobs
