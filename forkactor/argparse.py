import os


def addArgumentParserBaseFlags(parser, logfileName):
    '''
    Creates a Base argument parser, which should be used for all
    scripts included with forkactor.
    Provides common flags for config file overrides, etc.

    Provides ALL flags required by the Config class.
    '''
    parser.add_argument(
        "-d",
        "--state-dir",
        dest='stateDir',
        metavar="DIR",
        help="Specify state directory (default='%(default)s')",
        default=os.getenv('FORKACTOR_STATE_DIR', "~/.local/share/forkactor"))
    parser.add_argument("--rc-file", dest="rcFile",
                        help="Specify path to rc-file (default=\"%(default)s\")",
                        default="~/.config/forkactorrc")
    parser.add_argument(
        "--debug",
        nargs="?",
        const=True,
        default=False,
        metavar="FILE",
        help="enable debug output to <state-dir>/log/%s.log, or to FILE" % logfileName)

