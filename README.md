# conckit

Thread-safe data structures and small concurrency tools for Python 3.10+,
with no third-party dependencies.

## What is inside

| Module | Purpose |
| --- | --- |
| `conckit.cmap.concurrent_map` | `ConcurrentMap`: a string-keyed map split into locked segments |
| `conckit.cmap.segment`, `conckit.cmap.bucket`, `conckit.cmap.pair` | The building blocks of the map: `Segment`, `Bucket`, `Pair` |
| `conckit.cmap.redistributor` | `PairRedistributor` and `DefaultPairRedistributor`, which grow or shrink a segment's buckets |
| `conckit.cow` | `ConcurrentArray` and `SegmentedIntArray`: copy-on-write integer arrays |
| `conckit.loadgen_lib` | `Caller`, `RawReq`, `RawResp`, `CallResult`, `RetCode`, `GeneratorStatus`, `TicketPool` |
| `conckit.loadgen` | `LoadGenerator`, `ParamSet`, `ResultChannel`: sends load at a fixed rate through a `Caller` |
| `conckit.calc_service` | `TCPServer` and `TCPComm`: a small arithmetic service over TCP that can serve as a load target |
| `conckit.chatbot` | `SimpleEN`, `SimpleCN` and a name registry (`register`, `get`) |
| `conckit.crawler_errors` | `CrawlerError` with its `ErrorType`, plus `IllegalParameterError` |
| `conckit.dirs` | `check_dir_path` (resolve and create a directory) and `record` (level-based logging) |
| `conckit.talk`, `conckit.cube_root`, `conckit.pipes`, `conckit.signals` | Command-line tools, see below |

## Installing

```
pip install .
pip install ".[test]"   # with pytest
```

## Concurrent map

```python
from conckit.cmap.concurrent_map import ConcurrentMap

cmap = ConcurrentMap(16)            # 16 segments, default redistributor
cmap.put("alpha", 1)                # True: a new key was added
cmap.put("alpha", 2)                # False: the element was replaced
cmap.get("alpha")                   # 2
cmap.get("missing")                 # None
cmap.delete("alpha")                # True
len(cmap)                           # 0
```

The concurrency must be between 1 and 65536, and elements may not be
`None`; either mistake raises `conckit.cmap.common.IllegalParameterError`.
Each segment starts with 16 buckets; `DefaultPairRedistributor` doubles
them when enough buckets are overweight. Keys are hashed with
`conckit.cmap.common.key_hash`.

## Copy-on-write arrays

```python
from conckit.cow import ConcurrentArray, SegmentedIntArray

array = ConcurrentArray(10)
array.set(3, 42)
array.get(3)                # 42

segmented = SegmentedIntArray(25)
segmented.set(20, 7)        # returns the value it replaced, 0
```

`ConcurrentArray` copies the whole array on every write;
`SegmentedIntArray` copies only the segment of ten elements being written.
An index outside the array raises `IndexError`.

## Load generator

```python
from conckit.calc_service import TCPComm, TCPServer
from conckit.loadgen import LoadGenerator, ParamSet, ResultChannel
from conckit.loadgen_lib import ret_code_plain

with TCPServer() as server:
    server.listen("127.0.0.1:0")
    params = ParamSet(
        caller=TCPComm(server.address),
        timeout=0.05,        # seconds
        lps=100,             # loads per second
        duration=2.0,        # seconds
        result_ch=ResultChannel(50),
    )
    generator = LoadGenerator(params)
    generator.start()
    for result in params.result_ch:      # ends when the generator stops
        print(ret_code_plain(result.code), result.msg)
```

`ParamSet.check` raises `ValueError` naming every invalid field.
`generator.stop()` stops it early. Results that do not fit in the channel
are dropped and logged rather than blocking the callers.

## Chatbots

```python
from conckit.chatbot import SimpleEN, get, register

register(SimpleEN("simple.en"))
bot = get("simple.en")
bot.hello("Ann")            # "Hello, Ann! What can I do for you?"
bot.talk("bye")             # ("Bye!", True)
```

Registering a bot with an empty or already used name raises `ChatbotError`.

## Command-line tools

```
conckit-talk                       # talk to the English chatbot on standard input
conckit-talk --chatbot simple.cn   # talk to the Chinese chatbot
conckit-cube-root                  # a TCP server and one client exchanging cube roots
conckit-pipes                      # run commands through pipes and show the output
conckit-signals                    # receive signals and send SIGQUIT to matching processes
```

- `conckit-talk`: type `bye` or `nothing` (or `再见` / `没有`) to finish.
- `conckit-cube-root --address HOST:PORT` chooses where the server listens
  (default `127.0.0.1:8085`).
- `conckit-pipes --pattern TEXT` chooses what is searched for in `ps aux`.
- `conckit-signals --pattern TEXT --delay SECONDS --duration SECONDS`:
  after the delay it sends SIGQUIT to every process whose `ps aux` line
  contains the pattern, while listening for SIGINT and SIGQUIT. Choose the
  pattern with care.

`conckit-pipes` and `conckit-signals` run `ps`, `grep`, `echo` and `awk`,
so they need a POSIX system.

## What it does not do

Everything here lives in memory: there is no file-backed storage of
records or blocks. The load generator and the arithmetic service are meant
for tests and experiments on one machine, not as a general benchmarking
server.

## Running the tests

```
pytest
```