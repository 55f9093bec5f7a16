from argparse import Namespace
import os

from forkactor.config import Config

HOME = '/home/me'


def resetEnv():
    os.environ['HOME'] = HOME
    os.environ['FORKACTOR_STATE_DIR'] = '/tmp/BADDIR'


def makeConfig(tmpdir, rcText=""):
    rcFile = os.path.join(str(tmpdir), "forkactorrc")
    with open(rcFile, "w") as rcFp:
        rcFp.write(rcText)
    options = Namespace(
        stateDir=str(tmpdir),
        rcFile=rcFile,
        debug=False,
    )
    return Config(options)
