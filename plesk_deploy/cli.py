import argparse
import os
import sys

from twisted.internet.task import react
from twisted.logger import (
    FilteringLogObserver, LogLevel, LogLevelFilterPredicate, Logger,
    globalLogPublisher, textFileLogObserver)

from plesk_deploy import __version__
from plesk_deploy.deployer import CertificateDeployer
from plesk_deploy.paths import MODULES, ensure_readable, resolve_paths
from plesk_deploy.plesk import DEFAULT_EXECUTABLE, PleskClient


log = Logger()

SHORT_ALIASES = {
    '-s': '--subscription',
    '-n': '--name',
    '-m': '--module',
}

LONG_OPTIONS = [
    'subscription', 'name', 'module', 'pub', 'pri', 'ca', 'plesk-bin',
    'log-level',
]


def normalize_args(args):
    """
    Rewrite the argument forms argparse doesn't understand: ``-s=value`` for
    the short aliases, single-dash long options like ``-pub path``, and
    values that start with a dash (``--name -wild``), which argparse would
    take for an option. Every option and its value are joined into a single
    ``--option=value`` argument.
    """
    out = []
    args = iter(args)
    for arg in args:
        option, sep, value = arg.partition('=')
        if option in SHORT_ALIASES:
            option = SHORT_ALIASES[option]
        elif option.startswith('-') and option.lstrip('-') in LONG_OPTIONS:
            option = '--' + option.lstrip('-')
        else:
            out.append(arg)
            continue

        if not sep:
            # Like Go's flag package, the next argument is always the value
            value = next(args, None)
            if value is None:
                out.append(option)
                continue

        out.append(option + '=' + value)

    return out


def parse_args(argv, env=os.environ):
    parser = argparse.ArgumentParser(
        prog='plesk-deploy',
        description='Deploy a TLS certificate to a Plesk subscription',
        epilog='Exits with status 0 when the certificate was deployed, 1 if '
               'the certificate files or the Plesk command failed, and 2 for '
               'invalid arguments.')
    parser.add_argument('-s', '--subscription',
                        help="Plesk subscription name or 'admin' for admin "
                             'pool (required)',
                        default='')
    parser.add_argument('-n', '--name',
                        help='Certificate name (required)',
                        default='')
    parser.add_argument('-m', '--module',
                        help='Module preset for certificate paths '
                             '(%s)' % ('|'.join(MODULES),),
                        default='')
    parser.add_argument('--pub',
                        help='Public certificate file path',
                        default='')
    parser.add_argument('--pri',
                        help='Private key file path',
                        default='')
    parser.add_argument('--ca',
                        help='CA certificate file path (optional)',
                        default='')
    parser.add_argument('--plesk-bin',
                        help='The Plesk executable to run (default: '
                             '%(default)s)',
                        default=env.get('PLESK_BIN') or DEFAULT_EXECUTABLE)
    parser.add_argument('--log-level',
                        help='The minimum severity level to log messages at '
                             '(default: %(default)s)',
                        choices=['debug', 'info', 'warn', 'error', 'critical'],
                        default='info')
    parser.add_argument('--version', action='version', version=__version__)

    args = parser.parse_args(normalize_args(argv))

    for key in ['subscription', 'name', 'module', 'pub', 'pri', 'ca',
                'plesk_bin']:
        setattr(args, key, getattr(args, key).strip())

    if not args.subscription:
        parser.error('missing required --subscription/-s')
    if not args.name:
        parser.error('missing required --name/-n')
    if args.module and args.module not in MODULES:
        parser.error("unsupported module '%s' (allowed: %s)" % (
            args.module, ', '.join(MODULES)))

    return args


def main(reactor, argv=sys.argv[1:], env=os.environ, plesk_client=None):
    """
    A tool to deploy a TLS certificate to a Plesk subscription, creating or
    updating it using the Plesk command-line utility.
    """
    args = parse_args(argv, env)

    # Set up logging
    init_logging(args.log_level)

    log_args = [
        ('subscription', args.subscription),
        ('name', args.name),
        ('module', args.module),
        ('pub', args.pub),
        ('pri', args.pri),
        ('ca', args.ca),
        ('plesk-bin', args.plesk_bin),
    ]
    log_args = ['{}={!r}'.format(k, v) for k, v in log_args]
    log.debug('Starting plesk-deploy {version} with: {args}',
              version=__version__, args=', '.join(log_args))

    try:
        cert_path, key_path, ca_path = resolve_paths(
            args.module, args.pub, args.pri, args.ca, env)

        cert_path = ensure_readable(cert_path, 'certificate')
        key_path = ensure_readable(key_path, 'private key')
        if ca_path:
            ca_path = ensure_readable(ca_path, 'CA certificate')
    except ValueError as e:
        log.error('Error: {error}', error=e)
        raise SystemExit(1)

    if plesk_client is None:
        plesk_client = PleskClient(
            executable=args.plesk_bin, env=env, reactor=reactor)

    deployer = CertificateDeployer(plesk_client)
    d = deployer.deploy(
        args.subscription, args.name, cert_path, key_path, ca_path)

    # The deployer has already logged the error, exit without a traceback
    def exit_on_failure(failure):
        raise SystemExit(1)

    return d.addErrback(exit_on_failure)


def init_logging(log_level):
    """
    Initialise the logging by adding an observer to the global log publisher.

    :param str log_level: The minimum log level to log messages for.
    """
    log_level_filter = LogLevelFilterPredicate(
        LogLevel.levelWithName(log_level))
    log_observer = FilteringLogObserver(
        textFileLogObserver(sys.stdout), [log_level_filter])
    globalLogPublisher.addObserver(log_observer)


def _main():  # pragma: no cover
    react(main)


if __name__ == '__main__':  # pragma: no cover
    _main()
