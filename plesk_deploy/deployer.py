from twisted.logger import Logger

from plesk_deploy.plesk import (
    PleskCommandError, certificate_exists, is_certificate_missing_error)


ACTION_CREATE = 'create'
ACTION_UPDATE = 'update'


class CertificateDeployer(object):
    log = Logger()

    def __init__(self, plesk_client):
        """
        Create the deployer.

        :param plesk_client: The ``PleskClient`` to run commands with.
        """
        self.plesk_client = plesk_client

    def deploy(self, subscription, name, cert_path, key_path, ca_path=None):
        """
        Create the named certificate in the subscription's pool, or update it
        if a certificate with that name is already there.

        :return: A Deferred that fires with the action taken, either
            ``'create'`` or ``'update'``.
        """
        self.log.info(
            "Deploying certificate '{name}' to subscription "
            "'{subscription}'...", name=name, subscription=subscription)

        d = self.plesk_client.list_certificates(subscription)
        d.addErrback(self._log_failure, 'Failed to list certificates')
        d.addCallback(certificate_exists, name)
        d.addCallback(
            self._deploy, subscription, name, cert_path, key_path, ca_path)
        d.addCallback(self._log_success, subscription, name)
        return d

    def _deploy(self, exists, subscription, name, cert_path, key_path,
                ca_path):
        action = ACTION_UPDATE if exists else ACTION_CREATE
        self.log.debug(
            "Certificate '{name}' {state}, will {action} it", name=name,
            state='exists' if exists else 'not found', action=action)

        d = self.plesk_client.deploy_certificate(
            subscription, name, cert_path, key_path, ca_path, exists)
        d.addCallback(lambda _: action)

        if exists:
            d.addErrback(
                self._create_if_missing, subscription, name, cert_path,
                key_path, ca_path)
        else:
            d.addErrback(self._log_failure, 'Failed to create certificate')

        return d

    def _create_if_missing(self, failure, subscription, name, cert_path,
                           key_path, ca_path):
        if (not failure.check(PleskCommandError) or
                not is_certificate_missing_error(failure.value.output)):
            return self._log_failure(failure, 'Failed to update certificate')

        self.log.warn(
            "Certificate '{name}' disappeared before it could be updated, "
            "creating it instead", name=name)

        d = self.plesk_client.deploy_certificate(
            subscription, name, cert_path, key_path, ca_path, exists=False)
        d.addCallback(lambda _: ACTION_CREATE)
        d.addErrback(self._log_failure, 'Failed to create certificate')
        return d

    def _log_failure(self, failure, message):
        self.log.error('{message}: {error}', message=message,
                       error=failure.getErrorMessage())
        command_args = getattr(failure.value, 'command_args', None)
        if command_args:
            self.log.error(
                'Command: {executable} {args}',
                executable=self.plesk_client.executable,
                args=' '.join(command_args))
        output = getattr(failure.value, 'output', '')
        if output:
            self.log.error('{output}', output=output.rstrip())
        return failure

    def _log_success(self, action, subscription, name):
        self.log.info(
            "Certificate '{name}' deployed successfully to subscription "
            "'{subscription}'.", name=name, subscription=subscription)
        return action
