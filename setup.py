# -*- encoding: utf-8 -*-
import os

from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(here, 'README.rst'), 'r', encoding='utf-8') as fh:
    long_description = fh.read()


def get_version(package_path):
    from importlib.util import module_from_spec, spec_from_file_location
    spec = spec_from_file_location('version', os.path.join(here, 'src', package_path, '_version.py'))
    module = module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.__version__


version = get_version('kubepreload')

setup(
    name='kube-preload',
    version=version,
    description='Pre-loads the container images of load-generation jobs onto all Kubernetes nodes',
    long_description=long_description,
    long_description_content_type='text/x-rst',
    classifiers="""Development Status :: 3 - Alpha
Environment :: Console
Intended Audience :: System Administrators
License :: OSI Approved :: Apache Software License
Operating System :: POSIX
Programming Language :: Python :: 3
Topic :: System :: Benchmark
""" [:-1].split('\n'),
    keywords='kubernetes benchmark images',
    license='Apache-2.0',
    packages=find_packages('src', exclude=['*.tests', '*.tests.*']),
    package_dir={
        '': 'src',
    },
    package_data={
        'kubepreload': ['schemas/*/*.yaml'],
    },
    install_requires=[
        'pykube-ng>=22.9.0',
        'requests>=2.20.0',
        'Jinja2>=3.0.0',
        'PrettyTable>=2.0.0',
        'semantic_version>=2.8.0,<3',
        'ruamel.yaml>=0.17.21',
        'argcomplete>=1.9.4',
        'cerberus>=1.3,<2',
        'structlog>=21.3.0',
        'colorama>=0.4.1,<1',
    ],
    extras_require={
        'dev': ['parameterized', 'pytest'],
    },
    python_requires='>=3.8',
    entry_points="""
        [console_scripts]
            kubepreload = kubepreload.scripts.kubepreload:main
    """,
)
