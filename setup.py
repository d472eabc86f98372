from setuptools import setup


if __name__ == '__main__':
    setup(
        name='cxxmangle',
        version='0.1.0',
        license='MIT',
        packages=['cxxmangle'],
        python_requires='>=3.7',
        install_requires=['click'],
        extras_require={
            'dev': [
                'black',
                'flake8',
                'flake8-import-order',
                'mypy',
                'pytest',
                'pytest-cov',
            ]
        },
        entry_points={'console_scripts': ['cxxmangle = cxxmangle.main:main']},
    )
