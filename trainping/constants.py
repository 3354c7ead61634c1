COUNT_DEFAULT = 10
INTERVAL_DEFAULT = 1000        # msec, inter-train spacing (also reply wait)
TRAIN_SIZE_DEFAULT = 1
TRAIN_INTERVAL_DEFAULT = 100   # msec, spacing of probes within a train
GAMMA_DEFAULT = 0              # msec
RATE_DEFAULT = 0.0             # events per minute

PAYLOAD_DEFAULT = 56           # bytes of ICMP payload
ICMP_HEADER = 8
IP_HEADER = 20
ECHO_TTL = 128

TRANSPORT_RAW = "raw-echo"
TRANSPORT_DATAGRAM = "datagram"

EXPORT_FILENAME = "Sequence_RTTs.txt"
