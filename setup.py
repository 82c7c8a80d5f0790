from setuptools import find_packages, setup

setup(
    name='boltbox',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',

    entry_points={
        'console_scripts': [
            'boltbox=boltbox.main:main',
        ],
    },
    install_requires=[
        'structlog',
        'click',
        'gevent',
        'pyyaml',
        'jinja2',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)
