from .cgroup import container_id_for_pid
from .owners import OwnershipResolver
from .procfs import ProcFS
from .roots import detect_containerized, resolve_proc_root
from .sockets import parse_table, read_sockets
