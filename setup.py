from setuptools import find_packages, setup

setup(
    name='forkactor',
    version='1.0.0',
    description='Configuration-management job worker with fork isolation and log capture',
    packages=find_packages(exclude=[
        'forkactor.test',
        'forkactor.test.*',
    ]),
    python_requires='>=3.8',
    install_requires=[
        'chardet',
        'python-dateutil',
        'requests',
        'simplejson',
    ],
    extras_require={
        'test': [
            'mock',
            'pytest',
        ],
    },
    entry_points={
        "console_scripts": [
            "forkactor = forkactor.main:main",
        ],
    }
)
