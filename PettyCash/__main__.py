from . import exec_

exec_()
