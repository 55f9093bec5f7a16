import configparser
import os
import tempfile

from .errors import InvalidLogLevel
from .logging import resolveLevel

RC_FILE_HELP = """\
Sample rcfile:
    [worker]
    timeout = 600             # seconds, or none to wait forever (default none)
    passthrough = stdout|stderr|none  # default=stdout
    scratch dir = /var/tmp/forkactor  # default: system temp dir
    [client]
    run list = /srv/recipes/base.py, /srv/recipes/web.py
    log level = info          # default=info
    [stream]
    url = https://logs.example.com/forkactor/stream
    timeout = 5               # seconds per chunk POST (default 5)
"""


class ConfigEnum(object):
    __slots__ = (
        'defaultName',
        '_enumVals',
    )

    def __init__(self, default, **enumVals):
        self._enumVals = enumVals
        assert default in enumVals
        self.defaultName = default
        for enumName in enumVals:
            assert enumName not in self.__slots__

    def names(self):
        return iter(self._enumVals.keys())

    def values(self):
        return iter(self._enumVals.values())

    @property
    def defaultVal(self):
        return self._enumVals[self.defaultName]

    def __getattr__(self, attr):
        assert attr != '_enumVals'
        if attr in self._enumVals:
            return self._enumVals[attr]
        else:
            return object.__getattribute__(self, attr)


PASSTHROUGH = ConfigEnum(
    'STDOUT',  # default
    STDOUT='stdout',
    STDERR='stderr',
    NONE='none',
)


def _getConfig(cfgParser, section, option, defaultValue=None):
    if not cfgParser.has_section(section):
        return defaultValue
    if not cfgParser.has_option(section, option):
        return defaultValue
    return cfgParser.get(section, option)


def _getEnumConfig(cfgParser, section, option, enum):
    optionVal = _getConfig(
        cfgParser, section, option, enum.defaultVal)
    if optionVal not in list(enum.values()):
        raise ConfigError(
            "RC file has invalid \"{section}.{option}\" setting {optionVal}.  Valid "
            "options: {allowedVals}".format(
                section=section,
                option=option,
                optionVal=optionVal,
                allowedVals=", ".join(list(enum.values()))))

    return optionVal


def _getSecondsConfig(cfgParser, section, option, default):
    val = _getConfig(cfgParser, section, option, None)
    if val is None:
        return default
    if val.strip().lower() == 'none':
        return None
    try:
        seconds = float(val)
    except ValueError:
        seconds = -1
    if seconds <= 0:
        raise ConfigError(
            "RC file has invalid \"{section}.{option}\" setting {optionVal}.  Valid "
            "options: a positive number of seconds, none".format(
                section=section,
                option=option,
                optionVal=val))
    return seconds


def _getListConfig(cfgParser, section, option):
    val = _getConfig(cfgParser, section, option, None)
    if not val:
        return []
    return [item.strip() for item in val.replace('\n', ',').split(',') if item.strip()]


class ConfigError(Exception):
    pass


class Config(object):
    # pylint: disable=too-many-instance-attributes
    validConfig = {
        'worker': {'timeout', 'passthrough', 'scratch dir'},
        'client': {'run list', 'log level'},
        'stream': {'url', 'timeout'},
    }

    def _validateConfigParser(self, cfgParser):
        cfgSections = set(cfgParser.sections())
        unknownSections = cfgSections - set(self.validConfig.keys())
        if unknownSections:
            raise ConfigError(
                "RC file has unknown configuration sections: {}".format(
                    ", ".join(sorted(unknownSections))))
        for section in cfgSections:
            cfgValues = set(cfgParser.options(section))
            unknownOptions = cfgValues - self.validConfig[section]
            if unknownOptions:
                raise ConfigError(
                    "RC file has unknown configuration options in "
                    "section \"{}\": {}".format(
                        section, ", ".join(sorted(unknownOptions))))

    def __init__(self, options):
        stateDir = options.stateDir
        self._logDir = os.path.expanduser(stateDir) + "/log/"

        rcFile = os.path.expanduser(options.rcFile)
        cfgParser = configparser.RawConfigParser(inline_comment_prefixes=("#", ";"))
        cfgParser.read(rcFile)
        self._validateConfigParser(cfgParser)

        self._timeout = _getSecondsConfig(cfgParser, 'worker', 'timeout', None)
        self._passthrough = _getEnumConfig(
            cfgParser, 'worker', 'passthrough', PASSTHROUGH)
        self._scratchDir = _getConfig(cfgParser, 'worker', 'scratch dir', None)

        self._runList = _getListConfig(cfgParser, 'client', 'run list')
        self._logLevel = _getConfig(cfgParser, 'client', 'log level', 'info')
        try:
            resolveLevel(self._logLevel)
        except InvalidLogLevel as error:
            raise ConfigError(
                "RC file has invalid \"client.log level\" setting {}".format(
                    self._logLevel)) from error

        self._streamUrl = _getConfig(cfgParser, 'stream', 'url', None)
        self._streamTimeout = _getSecondsConfig(cfgParser, 'stream', 'timeout', 5.0)

    @staticmethod
    def checkDir(dirName):
        if not os.access(dirName, os.W_OK | os.X_OK | os.R_OK):
            os.makedirs(dirName)
        return dirName

    @property
    def logDir(self):
        return self.checkDir(self._logDir)

    @property
    def scratchDir(self):
        if self._scratchDir is None:
            return tempfile.gettempdir()
        return self.checkDir(os.path.expanduser(self._scratchDir))

    @property
    def timeout(self):
        return self._timeout

    @property
    def passthrough(self):
        return self._passthrough

    @property
    def runList(self):
        return list(self._runList)

    @property
    def logLevel(self):
        return self._logLevel

    @property
    def streamUrl(self):
        return self._streamUrl

    @property
    def streamTimeout(self):
        return self._streamTimeout
