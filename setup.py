"""
Packaging for the line client. Install with `pip install -e .[test]` to run the tests.
"""

from setuptools import setup


setup(
    name='lineclient',
    version='0.0.1',
    description='Minimal interactive TCP client that sends CR LF terminated text lines.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    python_requires='>=3.7',
    packages=['lineclient', 'lineclient.conduit', 'lineclient.config', 'lineclient.connector',
              'lineclient.protocol', 'lineclient.support'],
    package_data={'lineclient.config': ['*.cfg']},
    install_requires=[
        'configobj>=5.0.6',
    ],
    extras_require={
        'test': ['PyHamcrest', 'pytest'],
    },
    entry_points={
        'console_scripts': ['lineclient=lineclient.client:main'],
    },
    zip_safe=False,
)
