from setuptools import setup
from setuptools import find_packages


def main():
    package_dir = {"": "src"}
    packages = find_packages("src")

    setup_requires = [
        "setuptools_scm",
    ]
    install_requires = [
        "numpy>=1.20",
        "scipy>=1.0",
        "pandas>=1.2",
        "pyparsing>=3.0",
        "tqdm>=4.0.0",
        "molmass",
    ]
    extras_require = {
        "test": [
            "pytest",
            "hypothesis",
        ],
    }

    setup(
        name="xtalcif",
        use_scm_version={"fallback_version": "2.0.0"},
        description="Parser and geometry deriver for Crystallographic Information Files",
        package_dir=package_dir,
        packages=packages,
        setup_requires=setup_requires,
        install_requires=install_requires,
        extras_require=extras_require,
        zip_safe=False,
        python_requires=">=3.9",
        entry_points={
            "console_scripts": [
                "xtalcif_parse = xtalcif.command_line.parse_cif:main",
            ]
        },
    )


if __name__ == "__main__":
    main()
