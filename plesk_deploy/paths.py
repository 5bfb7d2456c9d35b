from twisted.python.filepath import FilePath


MODULE_CERTD = 'certd'
MODULE_ACME = 'acme.sh'
MODULE_CERTIMATE = 'certimate'

# Environment variables set by each integration before running a deploy hook,
# in (certificate, private key, CA certificate) order.
MODULE_PRESETS = {
    MODULE_CERTD: (
        'HOST_CRT_PATH',
        'HOST_KEY_PATH',
        'HOST_IC_PATH',
    ),
    MODULE_ACME: (
        'CERT_FULLCHAIN_PATH',
        'CERT_KEY_PATH',
        'CA_CERT_PATH',
    ),
    MODULE_CERTIMATE: (
        'CERTIMATE_DEPLOYER_CMDVAR_CERTIFICATE_PATH',
        'CERTIMATE_DEPLOYER_CMDVAR_PRIVATEKEY_PATH',
        'CERTIMATE_DEPLOYER_CMDVAR_CERTIFICATE_INTERMEDIA_PATH',
    ),
}

MODULES = (MODULE_CERTD, MODULE_ACME, MODULE_CERTIMATE)


def resolve_paths(module, pub_path, pri_path, ca_path, env):
    """
    Work out the certificate, private key and CA certificate paths. Paths
    given explicitly always win; any that are missing are filled in from the
    environment variables of the module preset, if a module is given.

    :param str module: The module preset name, or an empty string/None.
    :param str pub_path: The public certificate path from the command line.
    :param str pri_path: The private key path from the command line.
    :param str ca_path: The CA certificate path from the command line.
    :param env: The environment mapping to read preset variables from.

    :return: A 3-tuple of (certificate, key, CA) paths. The CA path is an
        empty string if there is none.
    :raises ValueError: If the module is unknown or the certificate or key
        path could not be found.
    """
    paths = [pub_path or '', pri_path or '', ca_path or '']

    if module:
        if module not in MODULE_PRESETS:
            raise ValueError("unsupported module '%s'" % (module,))

        for i, env_key in enumerate(MODULE_PRESETS[module]):
            if not paths[i]:
                paths[i] = _get_environ_str(env, env_key, '')

    cert_path, key_path, ca_path = [path.strip() for path in paths]

    if not cert_path or not key_path:
        raise ValueError(
            'public and private key paths must be provided via flags or '
            'module environment variables')

    return cert_path, key_path, ca_path


def ensure_readable(path, label):
    """
    Check that the path is a regular file that can be opened for reading.

    :param str path: The path to check.
    :param str label: A human readable name for the file, used in errors.

    :return: The absolute path to the file.
    :raises ValueError: If the file cannot be used.
    """
    if not path:
        raise ValueError('%s path is empty' % (label,))

    file_path = FilePath(path)

    try:
        file_path.restat()
    except OSError as e:
        raise ValueError('%s file check failed: %s' % (label, e))

    if file_path.isdir():
        raise ValueError(
            '%s path points to a directory, not a file' % (label,))

    try:
        with file_path.open('r'):
            pass
    except (IOError, OSError) as e:
        raise ValueError('%s file is not readable: %s' % (label, e))

    return file_path.path


def _get_environ_str(env, env_key, default=None):
    # Ignore values that are set but empty
    env_value = env.get(env_key)
    return env_value if env_value else default
