#!/usr/bin/env python
# -*- encoding: utf-8 -*-
# PYTHON_ARGCOMPLETE_OK

import argparse
import os
import sys
from typing import NamedTuple, Type

import argcomplete

import kubepreload.exception


class _ExceptionMapping(NamedTuple):
    exception: Type[BaseException]
    exit_code: int
    include_stacktrace: bool


def completion(shell: str) -> None:
    print(argcomplete.shellcode(sys.argv[0], shell=shell))


def main():
    parser = argparse.ArgumentParser(formatter_class=argparse.ArgumentDefaultsHelpFormatter, allow_abbrev=False)

    parser.add_argument('-c', '--config-file', default=None, type=str, help='Specify a non-default configuration file')
    parser.add_argument('-m',
                        '--machine-output',
                        action='store_true',
                        default=False,
                        help='Enable machine-readable JSON output')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO',
                        help='Only log messages of this level or above on the console')
    parser.add_argument('--no-color',
                        action='store_true',
                        default=False,
                        help='Disable colorization of console logging')
    parser.add_argument('--kubeconfig',
                        default=None,
                        type=str,
                        help='Kubeconfig file (overrides the configuration and the environment)')

    subparsers_root = parser.add_subparsers(title='commands')

    # CLEANUP
    p = subparsers_root.add_parser('cleanup', help='Delete all pre-load staging namespaces')
    p.set_defaults(func='cleanup')

    # COMPLETION
    p = subparsers_root.add_parser('completion', help='Emit autocompletion script')
    p.add_argument('shell', choices=['bash', 'tcsh'], help='Shell')
    p.set_defaults(func='completion')

    # IMAGES
    p = subparsers_root.add_parser('images', help='List the images which would be pre-loaded')
    p.add_argument('job_names', metavar='job', nargs='*', help='Job name (all jobs if not specified)')
    p.set_defaults(func='images')

    # PRELOAD
    p = subparsers_root.add_parser('preload', help='Pre-load the images of jobs with pre-loading enabled')
    p.add_argument('job_names', metavar='job', nargs='*', help='Job name (all jobs if not specified)')
    p.set_defaults(func='preload')

    # VERSION-INFO
    p = subparsers_root.add_parser('version-info', help='Program version information')
    p.set_defaults(func='version_info')

    argcomplete.autocomplete(parser)
    args = parser.parse_args()

    if not hasattr(args, 'func'):
        parser.print_usage()
        sys.exit(os.EX_USAGE)

    if args.func == 'completion':
        completion(args.shell)
        sys.exit(os.EX_OK)

    from kubepreload.config import Config
    from kubepreload.logging import logger, init_logging

    console_formatter = 'console-colored'
    if args.machine_output:
        console_formatter = 'json'
    elif args.no_color:
        console_formatter = 'console-plain'

    # yapf: disable
    exception_mappings = [
        _ExceptionMapping(exception=kubepreload.exception.UsageError, exit_code=os.EX_USAGE, include_stacktrace=False),
        _ExceptionMapping(exception=kubepreload.exception.ConfigurationError, exit_code=os.EX_CONFIG, include_stacktrace=False),
        _ExceptionMapping(exception=kubepreload.exception.FatalError, exit_code=os.EX_UNAVAILABLE, include_stacktrace=True),
        _ExceptionMapping(exception=kubepreload.exception.RenderError, exit_code=os.EX_DATAERR, include_stacktrace=False),
        _ExceptionMapping(exception=kubepreload.exception.WorkloadCreateError, exit_code=os.EX_TEMPFAIL, include_stacktrace=False),
        _ExceptionMapping(exception=kubepreload.exception.CleanupError, exit_code=os.EX_TEMPFAIL, include_stacktrace=False),
        _ExceptionMapping(exception=kubepreload.exception.InternalError, exit_code=os.EX_SOFTWARE, include_stacktrace=True),
        _ExceptionMapping(exception=PermissionError, exit_code=os.EX_NOPERM, include_stacktrace=False),
        _ExceptionMapping(exception=FileNotFoundError, exit_code=os.EX_NOINPUT, include_stacktrace=False),
        _ExceptionMapping(exception=ConnectionError, exit_code=os.EX_IOERR, include_stacktrace=True),
        _ExceptionMapping(exception=KeyboardInterrupt, exit_code=os.EX_NOINPUT, include_stacktrace=False),
        _ExceptionMapping(exception=BaseException, exit_code=os.EX_SOFTWARE, include_stacktrace=True),
    ]
    # yapf: enable

    func_args = dict(args._get_kwargs())
    for key in ('config_file', 'func', 'log_level', 'machine_output', 'no_color', 'kubeconfig'):
        del func_args[key]

    try:
        init_logging(console_level=args.log_level, console_formatter=console_formatter)

        if args.config_file is not None and args.config_file != '':
            config = Config(sources=[args.config_file])
        else:
            config = Config()

        init_logging(logfile=config.get('logFile', None, types=(str, type(None))),
                     console_level=args.log_level,
                     console_formatter=console_formatter)

        from kubepreload.commands import Commands
        commands = Commands(args.machine_output, config, kubeconfig=args.kubeconfig)
        func = getattr(commands, args.func)

        logger.debug('commands.{0}(**{1!r})'.format(args.func, func_args))
        func(**func_args)
        sys.exit(os.EX_OK)
    except SystemExit:
        raise
    except BaseException as exception:
        for case in exception_mappings:
            if isinstance(exception, case.exception):
                message = str(exception)
                if message:
                    message = '{}: {}'.format(exception.__class__.__name__, message)
                else:
                    message = '{} exception occurred.'.format(exception.__class__.__name__)
                if case.include_stacktrace:
                    logger.error(message, exc_info=True)
                else:
                    logger.debug(message, exc_info=True)
                    logger.error(message)
                sys.exit(case.exit_code)


if __name__ == '__main__':
    main()
