from typing import Any, Callable, List

from ruamel.yaml import YAML

from kubepreload.exception import RenderError
from kubepreload.job import Job
from kubepreload.kinds import WorkloadKind
from kubepreload.logging import logger
from kubepreload.templates import MissingKeyPolicy, render_template


def _parse_document(rendered: str) -> Any:
    return YAML(typ='safe', pure=True).load(rendered)


def extract_images(job: Job, render: Callable = render_template) -> List[str]:
    """Returns the container images referenced by the objects of a job in declaration order.

    Duplicates are kept. Objects of a kind which doesn't reference images we know how to find are skipped. The first
    object failing to render aborts the extraction with a RenderError.
    """
    images: List[str] = []
    for object_definition in job.objects:
        try:
            rendered = render(object_definition.object_spec, object_definition.input_vars, MissingKeyPolicy.ZERO,
                              job.function_templates)
            document = _parse_document(rendered)
        except Exception as exception:
            raise RenderError('Rendering of template {} failed: {}'.format(object_definition.object_template,
                                                                           exception)) from exception

        kind = WorkloadKind.from_document(document)
        if kind is None:
            logger.debug('Skipping template {}, no images to extract from its kind.'.format(
                object_definition.object_template))
            continue

        object_images = kind.extract_images(document)
        logger.debug('Found {} image(s) in {} template {}.'.format(len(object_images), kind.value,
                                                                   object_definition.object_template))
        images.extend(object_images)

    return images
