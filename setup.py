from setuptools import setup, find_packages

setup(
    name='inkvision',
    version='1.1',
    description='Landmark recognition that overlays a video once a landmark is confirmed',
    url="https://github.com/inkvision/inkvision.git",
    author='InkVision',
    license='new BSD',
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        'numpy',
        'requests',
        'opencv-python',
        'fastapi',
        'uvicorn',
        'python-multipart',
    ],
    extras_require={
        'tfhub': ['tensorflow', 'tensorflow-hub'],
        'test': ['pytest', 'httpx'],
    },
    tests_require=['pytest', 'httpx'],
    entry_points={
        'console_scripts': [
            'inkvision-overlay=inkvision.overlay.cli:main',
            'inkvision-api=inkvision.overlay.api:main',
        ],
    },
    scripts=[],
    include_package_data=True,
    zip_safe=False
)
