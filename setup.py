import setuptools
import os

own_dir = os.path.abspath(os.path.dirname(__file__))


def requirements():
    with open(os.path.join(own_dir, 'requirements.txt')) as f:
        for line in f.readlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            yield line


def modules():
    return [
        'gitutil',
        'version',
    ]


def version():
    with open(os.path.join(own_dir, 'VERSION')) as f:
        return f.read().strip()


setuptools.setup(
    name='changelog-drafter',
    version=version(),
    description='Drafts release changelogs from git history',
    python_requires='>=3.10',
    py_modules=modules(),
    packages=['changelog'],
    package_data={
        'changelog':['resources/*.mako'],
    },
    install_requires=list(requirements()),
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'changelog-drafter = changelog.cli:main',
        ],
    },
)
