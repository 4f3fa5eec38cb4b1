from setuptools import find_packages, setup

setup(
    name='calcnotes',
    version='1.0.0',
    description='Calculator notebook engine with a FastAPI backend',
    packages=find_packages(include=['calcnotes', 'calcnotes.*']),
    python_requires='>=3.8',
    install_requires=[
        'fastapi',
        'pydantic',
        'uvicorn',
    ],
    extras_require={
        'test': ['pytest', 'httpx'],
    },
    entry_points={
        'console_scripts': [
            'calcnotes-server=calcnotes.api_server:main',
        ],
    },
)
