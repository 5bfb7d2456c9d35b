from twisted.internet.defer import succeed

from plesk_deploy.plesk import ADMIN_SUBSCRIPTION


class FakePlesk(object):
    """
    A very simple fake of the ``plesk bin certificate`` command. Only
    supports listing, creating and updating certificates. Certificates are
    kept per pool: the admin pool or a subscription's pool.
    """
    def __init__(self, subscriptions=()):
        self._pools = {ADMIN_SUBSCRIPTION: {}}
        for subscription in subscriptions:
            self.add_subscription(subscription)

        self.calls = []

        # Certificate names that "disappear" just before the next update
        self._delete_before_update = set()

    def add_subscription(self, subscription):
        self._pools.setdefault(subscription, {})

    def add_certificate(self, subscription, name, files):
        self._pools[subscription][name] = files

    def get_certificate(self, subscription, name):
        return self._pools[subscription].get(name)

    def delete_before_update(self, name):
        self._delete_before_update.add(name)

    def run(self, executable, args, env, reactor):
        """
        A runner for ``PleskClient``: fires with the output and exit status
        the real command would produce.
        """
        self.calls.append(list(args))
        output, code = self._handle(list(args))
        return succeed((output.encode('utf-8'), code))

    def _handle(self, args):
        if args[:2] != ['bin', 'certificate'] or len(args) < 3:
            return 'Unknown command\n', 1
        args = args[2:]

        action = args.pop(0)
        name = None
        if action in ['-c', '-u']:
            name = args.pop(0)

        pool, args = self._pop_pool(args)
        if pool is None:
            return 'Domain does not exist\n', 1

        if action == '-l':
            return self._list(pool), 0

        files = dict(zip(args[::2], args[1::2]))
        if action == '-c':
            if name in pool:
                return ('Unable to create certificate: Certificate with '
                        'name %s already exists.\n' % (name,)), 1
            pool[name] = files
            return 'SUCCESS: Certificate %s was created\n' % (name,), 0

        if action == '-u':
            if name in self._delete_before_update:
                self._delete_before_update.discard(name)
                pool.pop(name, None)
            if name not in pool:
                return ('An error occurred during certificate update: '
                        'Unable to update certificate: Certificate does not '
                        'exist.\n'), 1
            pool[name] = files
            return 'SUCCESS: Certificate %s was updated\n' % (name,), 0

        return 'Unknown option %s\n' % (action,), 1

    def _pop_pool(self, args):
        if args[:1] == ['-admin']:
            return self._pools[ADMIN_SUBSCRIPTION], args[1:]
        if args[:1] == ['-domain'] and len(args) > 1:
            return self._pools.get(args[1]), args[2:]
        return None, args

    def _list(self, pool):
        lines = ['CSR  Pvt  Cert  CA   Name                      Used']
        for name, files in pool.items():
            lines.append('N    Y    Y     %s    %-25s 0' % (
                'Y' if '-cacert-file' in files else 'N', name))
        return '\n'.join(lines) + '\n'
