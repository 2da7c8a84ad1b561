#!/usr/bin/env python3
# -*- encoding: utf-8 -*-
import operator
import os
import re
from functools import reduce
from os.path import expanduser
from typing import List, Union, Dict, Any, Optional, Sequence

import semantic_version
from cerberus import Validator, SchemaError
from ruamel.yaml import YAML

from kubepreload.exception import ConfigurationError, InternalError
from kubepreload.logging import logger
from kubepreload.utils import parse_duration
from kubepreload.versions import VERSIONS

_SCHEMA_FILE = os.path.join(os.path.dirname(__file__), 'schemas', 'v{}'.format(VERSIONS.configuration.current.major),
                            'kubepreload.config.yaml')


def _yaml_load(stream) -> Any:
    return YAML(typ='safe', pure=True).load(stream)


def _load_schema(file: str) -> Dict:
    try:
        with open(file, 'r') as f:
            return _yaml_load(f)
    except FileNotFoundError:
        raise InternalError('Schema {} not found or not accessible.'.format(file))


class ConfigDict(dict):

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.full_name: Optional[str] = None


class ConfigList(list):

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.full_name: Optional[str] = None


class Config:
    _CONFIG_DIRS = ['/etc', '/etc/kube-preload']
    _CONFIG_FILE = 'kube-preload.yaml'
    _CONFIGURATION_VERSION_KEY = 'configurationVersion'
    _CONFIGURATION_VERSION_REGEX = r'\d+'

    _schema: Optional[Dict] = None

    class _Validator(Validator):

        def _normalize_coerce_to_string(self, value):
            return str(value)

        def _normalize_coerce_to_dict(self, value):
            return {} if value is None else value

        def _normalize_coerce_to_list(self, value):
            return [] if value is None else value

        def _check_with_duration(self, field, value):
            try:
                parse_duration(value)
            except ValueError as exception:
                self._error(field, str(exception))

    @classmethod
    def _get_validator(cls) -> Validator:
        if cls._schema is None:
            logger.debug('Loading schema {}.'.format(_SCHEMA_FILE))
            cls._schema = _load_schema(_SCHEMA_FILE)
        try:
            return Config._Validator(cls._schema)
        except SchemaError as exception:
            logger.error('Schema {} validation errors:'.format(_SCHEMA_FILE))
            cls._output_validation_errors(exception.args[0])
            raise InternalError('Schema {} is invalid.'.format(_SCHEMA_FILE)) from exception

    @staticmethod
    def _output_validation_errors(errors) -> None:

        def traverse(cursor, path=''):
            if isinstance(cursor, dict):
                for key, value in cursor.items():
                    traverse(value, path + ('.' if path else '') + str(key))
            elif isinstance(cursor, list):
                for value in cursor:
                    if isinstance(value, dict):
                        traverse(value, path)
                    else:
                        logger.error('  {}: {}'.format(path, value))

        traverse(errors)

    def _validate(self, config: Union[Dict, ConfigDict]) -> Dict:
        validator = self._get_validator()
        if not validator.validate({'configuration': config}):
            logger.error('Configuration validation errors:')
            self._output_validation_errors(validator.errors)
            raise ConfigurationError('Configuration is invalid.')

        return validator.document['configuration']

    def __init__(self, ad_hoc_config: str = None, sources: Sequence[str] = None) -> None:
        if ad_hoc_config is None:
            if not sources:
                sources = self._get_sources()

            config = None
            for source in sources:
                if os.path.isfile(source):
                    try:
                        with open(source, 'r') as f:
                            config = _yaml_load(f)
                    except Exception as exception:
                        raise ConfigurationError('Configuration file {} is invalid.'.format(source)) from exception
                    if config is None:
                        raise ConfigurationError('Configuration file {} is empty.'.format(source))
                    self.base_directory = os.path.dirname(os.path.abspath(source))
                    break

            if not config:
                raise ConfigurationError('No configuration file found in the default places ({}).'.format(
                    ', '.join(sources)))
        else:
            try:
                config = _yaml_load(ad_hoc_config)
            except Exception as exception:
                raise ConfigurationError('Configuration string is invalid.') from exception
            if config is None:
                raise ConfigurationError('Configuration string is empty.')
            self.base_directory = os.getcwd()

        if not isinstance(config, dict):
            raise ConfigurationError('Configuration must be a mapping.')

        if self._CONFIGURATION_VERSION_KEY not in config:
            raise ConfigurationError('Configuration is missing required key "{}".'.format(
                self._CONFIGURATION_VERSION_KEY))

        version = str(config[self._CONFIGURATION_VERSION_KEY])
        if not re.fullmatch(self._CONFIGURATION_VERSION_REGEX, version):
            raise ConfigurationError('Configuration has invalid version of "{}".'.format(version))

        version_obj = semantic_version.Version(major=int(version), minor=0, patch=0)
        if version_obj not in VERSIONS.configuration.supported:
            raise ConfigurationError('Configuration has unsupported version of "{}".'.format(version))

        self._config = ConfigDict(self._validate(config))
        logger.debug('Loaded configuration: {}'.format(self._config))

    def _get_sources(self) -> List[str]:
        sources = ['{}/{}'.format(directory, self._CONFIG_FILE) for directory in self._CONFIG_DIRS]
        sources.append(expanduser('~/.{}'.format(self._CONFIG_FILE)))
        sources.append(expanduser('~/{}'.format(self._CONFIG_FILE)))
        return sources

    @staticmethod
    def _get(root, name: str, *args, types: Any = None, full_name_override: str = None, index: int = None) -> Any:
        """Looks up a dotted key below root.

        The full name of the key is only used in error messages and for nested sections, it is derived from root
        unless it is overridden. With a second positional argument that is returned when the key is missing.
        """
        if full_name_override is not None:
            prefix = full_name_override
        else:
            prefix = getattr(root, 'full_name', None) or ''
        if index is not None:
            prefix = '{}{}{}'.format(prefix, '.' if prefix else '', index)
        full_name = '{}{}{}'.format(prefix, '.' if prefix else '', name)

        if len(args) > 1:
            raise InternalError('Called with more than two arguments for key {}.'.format(full_name))

        try:
            value = reduce(operator.getitem, name.split('.'), root)
        except KeyError:
            if args:
                return args[0]
            raise KeyError('Config option {} is missing.'.format(full_name)) from None

        if types is not None and not isinstance(value, types):
            raise TypeError('Config value {} has wrong type {}, expected {}.'.format(full_name, type(value), types))

        if isinstance(value, dict):
            value = ConfigDict(value)
            value.full_name = full_name
        elif isinstance(value, list):
            value = ConfigList(value)
            value.full_name = full_name
        return value

    def get(self, name: str, *args, **kwargs) -> Any:
        return Config._get(self._config, name, *args, **kwargs)

    @staticmethod
    def get_from_dict(dict_: ConfigDict, name: str, *args, **kwargs) -> Any:
        return Config._get(dict_, name, *args, **kwargs)
