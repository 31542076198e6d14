from setuptools import find_packages, setup

DESCRIPTION = 'Chunked, compressed, N-dimensional arrays for raster ' \
              'coverages, stored Zarr v3 style.'

with open('README.md') as f:
    LONG_DESCRIPTION = f.read()

dependencies = [
    'numpy>=1.24',
    'numcodecs>=0.11',
    'zstandard>=0.21',
    'crc32c>=2.3',
    'donfig>=0.8',
    'typing_extensions>=4.6',
]

setup(
    name='gridzarr',
    version='0.1.0',
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    setup_requires=[
        'setuptools>=61',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
            'hypothesis',
        ],
    },
    python_requires='>=3.10, <4',
    install_requires=dependencies,
    package_dir={'': 'src'},
    packages=find_packages('src'),
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python',
        'Topic :: Scientific/Engineering :: GIS',
        'Operating System :: Unix',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    license='MIT',
)
