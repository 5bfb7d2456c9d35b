from setuptools import setup, find_packages


setup(
    name='plesk-deploy',
    version='0.0.1',
    license='MIT',
    description=('Deploy TLS certificates to Plesk subscriptions from ACME '
                 'client deploy hooks'),
    packages=find_packages(),
    install_requires=[
        'Twisted',
    ],
    extras_require={
        'test': [
            'fixtures',
            'pytest',
            'testtools',
        ],
    },
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Framework :: Twisted',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: Implementation :: CPython',
        'Programming Language :: Python :: Implementation :: PyPy'
    ],
    entry_points={
        'console_scripts': ['plesk-deploy = plesk_deploy.cli:_main'],
    }
)
