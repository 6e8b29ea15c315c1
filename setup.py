import setuptools

with open("README.md", "r", encoding = "utf-8") as fh:
	long_description = fh.read()

setuptools.setup(
	name = "ctcblank",
	version = "1.0.0",
	author = "ctcblank developers",
	description = "Remove CTC blank symbols from weighted lattices",
	long_description = long_description,
	long_description_content_type = "text/markdown",
	classifiers = [
		"Programming Language :: Python :: 3",
		"License :: OSI Approved :: Apache Software License",
		"Operating System :: OS Independent",
	],
	package_dir = {"": "src"},
	packages = setuptools.find_packages(where="src"),
	python_requires = ">=3.8",
	install_requires = [
		"graphviz", "tqdm"
	],
	extras_require = {
		"test": ["pytest"],
	},
	entry_points = {
		"console_scripts": [
			"lattice-remove-ctc-blank = ctcblank.cli:remove_blank_main",
			"lattice-draw = ctcblank.cli:draw_main",
		],
	},
)
