import os

from twisted.internet.defer import maybeDeferred
from twisted.internet.utils import getProcessOutputAndValue
from twisted.logger import Logger


ADMIN_SUBSCRIPTION = 'admin'

DEFAULT_EXECUTABLE = 'plesk'


class PleskCommandError(Exception):
    """
    Exception type for a ``plesk`` invocation that did not succeed. The
    ``output`` attribute holds everything the command wrote to stdout and
    stderr.
    """
    def __init__(self, message, args=None, output='', code=None):
        super(PleskCommandError, self).__init__(message)
        self.command_args = args
        self.output = output
        self.code = code


def scope_args(subscription):
    """
    The arguments selecting the certificate pool: the admin pool or the pool
    for a subscription (domain).
    """
    if subscription == ADMIN_SUBSCRIPTION:
        return ['-admin']
    return ['-domain', subscription]


def parse_certificate_name(line):
    """
    Parse the certificate name out of a single row of the table printed by
    ``plesk bin certificate -l``. The table looks like::

        CSR  Pvt  Cert  CA   Name                     Used
        N    Y    Y     Y    Lets Encrypt example.com 1

    Returns None if the line is not a certificate row.
    """
    fields = line.split()
    if len(fields) < 6:
        return None

    try:
        int(fields[-1])
    except ValueError:
        return None

    name_parts = fields[4:-1]
    if not name_parts:
        return None

    return ' '.join(name_parts)


def certificate_names(output):
    """ All the certificate names in the listing output, in order. """
    names = []
    for line in output.splitlines():
        name = parse_certificate_name(line)
        if name is not None:
            names.append(name)
    return names


def certificate_exists(output, name):
    return name in certificate_names(output)


def is_certificate_missing_error(output):
    """
    Whether an update failed because the certificate no longer exists.
    """
    return ('Unable to update certificate' in output and
            'Certificate does not exist.' in output)


def _run_process(executable, args, env, reactor):
    d = getProcessOutputAndValue(
        executable, args, env=env, reactor=reactor)

    # Plesk reports errors on either stream so treat them as one
    return d.addCallback(lambda result: (result[0] + result[1], result[2]))


class PleskClient(object):
    """
    A client for the certificate functions of the Plesk command-line
    utility.
    """
    log = Logger()

    def __init__(self, executable=DEFAULT_EXECUTABLE, env=None, reactor=None,
                 runner=None):
        """
        :param executable: The ``plesk`` executable name or path.
        :param env: The environment for the child process. Defaults to the
            current environment.
        :param reactor: The reactor to spawn processes with.
        :param runner: A callable with the signature
            ``runner(executable, args, env, reactor)`` returning a Deferred
            that fires with an ``(output_bytes, exit_code)`` tuple. Defaults
            to spawning a real process.
        """
        self.executable = executable
        self._env = dict(os.environ if env is None else env)
        self._reactor = reactor
        self._runner = runner if runner is not None else _run_process

    def run(self, *args):
        """
        Run the executable with the given arguments.

        :return: A Deferred that fires with the decoded output, or fails with
            ``PleskCommandError`` if the command did not exit with status 0.
        """
        args = list(args)
        self.log.debug('Running {executable} {args}',
                       executable=self.executable, args=' '.join(args))

        # Spawning raises synchronously if the executable can't be found
        d = maybeDeferred(
            self._runner, self.executable, args, self._env, self._reactor)
        d.addCallbacks(self._handle_result, self._handle_failure,
                       callbackArgs=(args,), errbackArgs=(args,))
        return d

    def _handle_result(self, result, args):
        raw_output, code = result
        output = raw_output.decode('utf-8', 'replace')

        if code != 0:
            raise PleskCommandError(
                'exit status %s' % (code,), args=args, output=output,
                code=code)

        self.log.debug('{executable} exited successfully',
                       executable=self.executable)
        return output

    def _handle_failure(self, failure, args):
        # getProcessOutputAndValue errbacks with the collected output and the
        # signal number if the process was killed
        value = failure.value
        if isinstance(value, tuple) and len(value) == 3:
            out, err, signal = value
            output = (out + err).decode('utf-8', 'replace')
            raise PleskCommandError(
                'killed by signal %s' % (signal,), args=args, output=output)

        raise PleskCommandError(
            'unable to run %s: %s' % (
                self.executable, failure.getErrorMessage()),
            args=args)

    def list_certificates(self, subscription):
        """
        List the certificates in the pool for the subscription.

        :return: A Deferred that fires with the listing output.
        """
        return self.run('bin', 'certificate', '-l', *scope_args(subscription))

    def deploy_certificate(self, subscription, name, cert_path, key_path,
                           ca_path=None, exists=False):
        """
        Create a certificate, or update it if it already ``exists``.

        :return: A Deferred that fires with the command output.
        """
        args = ['bin', 'certificate']
        args.extend(['-u' if exists else '-c', name])
        args.extend(scope_args(subscription))
        args.extend(['-key-file', key_path, '-cert-file', cert_path])
        if ca_path:
            args.extend(['-cacert-file', ca_path])

        return self.run(*args)
