from setuptools import setup, find_packages


setup(
    name='musicnorm',
    version='0.0.1+git',
    description='Keep loudness and tags of a music library up to date',
    license='Apache',
    platforms='any',
    entry_points={
        'console_scripts': [
            'musicnorm=musicnorm.app:run',
        ],
    },
    packages=find_packages(exclude=('tests',)),
    package_data={
        'musicnorm': ['schema.json'],
        'musicnorm.metadata': ['schema.json'],
    },
    include_package_data=True,
    install_requires=[
        'mutagen',
        'pillow',
        'pydub',
        'audioop-lts; python_version>="3.13"',
        'ruamel.yaml',
        'jsonschema',
    ],
    python_requires='>=3.6',
    zip_safe=False,
)
