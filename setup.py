import os
from setuptools import setup, find_packages
from setuptools.command.build_py import build_py as _build

CLASSIFIERS = [
    'Operating System :: POSIX',
    'Operating System :: MacOS :: MacOS X',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Internet :: WWW/HTTP :: WSGI :: Application'
]

pkgdir = os.path.dirname(os.path.abspath(__file__))

def get_version():
    out = "dev"
    versfile = os.path.join(os.environ.get('PACKAGE_DIR', pkgdir), 'VERSION')
    if os.path.exists(versfile):
        with open(versfile) as fd:
            parts = fd.readline().split()
        if len(parts) > 0:
            out = parts[-1]
    else:
        out = "(unknown)"
    return out

def write_version_mod(version, pydir):
    versmodf = os.path.join(pydir, "acfield", "version.py")
    with open(versmodf, 'w') as fd:
        fd.write('"""')
        fd.write("""
An identification of the system version.  Note that this module file gets
(over-) written by the build process.
""")
        fd.write('"""\n\n')
        fd.write('__version__ = "')
        fd.write(version)
        fd.write('"\n')

class build(_build):

    def run(self):
        write_version_mod(get_version(), os.path.join(pkgdir, "python"))
        _build.run(self)

setup(name='acfield',
      version=get_version(),
      description="acfield: an autocompleting form field whose suggestions come from a record source",
      package_dir={'': 'python'},
      packages=find_packages(where='python', include=['acfield', 'acfield.*']),
      scripts=[ 'scripts/acfield-uwsgi.py' ],
      install_requires=[ 'PyYAML', 'pymongo', 'requests' ],
      extras_require={ 'test': [ 'pytest' ] },
      python_requires='>=3.8',
      cmdclass={'build_py': build},
      classifiers=CLASSIFIERS,
      zip_safe=False
)
