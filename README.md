# rmiiudp

`rmiiudp` is a clock-cycle model of a small Ethernet MAC that speaks UDP over
IPv4 on an RMII bus. Each call to `step` is one RMII clock, in which two data
bits cross the bus.

The package has two halves:

* **Receiver** (`rmiiudp.receiver.EthernetReceiver`) takes the RMII receive
  signals `rxd`, `rxerr` and `crsdv` one clock at a time. It finds the
  preamble and start frame delimiter, packs bit pairs into bytes, checks the
  frame check sequence (CRC-32), filters on the local MAC address, IPv4
  address and UDP port, and checks the UDP checksum. Only the UDP payload of
  good frames leaves it, as a stream of `AxisWord`s. The sender's MAC address,
  IPv4 address and UDP port travel with each payload word in its `user` field.
* **Transmitter** (`rmiiudp.transmitter.EthernetTransmitter`) takes payload
  `AxisWord`s and builds whole frames around them: preamble, Ethernet header,
  IPv4 header with its checksum, UDP header with its checksum, the payload
  padded to a minimum size, and the CRC-32 frame check sequence. The frame is
  driven out two bits per clock, followed by an inter-packet gap.

The package needs nothing outside the standard library.

## Installation

```
pip install rmiiudp
```

To run the tests:

```
pip install "rmiiudp[test]"
pytest
```

## Building blocks

`rmiiudp.types`:

* `AxisWord(data, last, user)`: one byte on a stream bus, an end-of-packet
  flag and a 96-bit side band.
* `Addresses(mac_addr, ip_addr, udp_port)`: one endpoint. `Addresses.user`
  packs it into a `user` side band (MAC in bits 47–0, IPv4 in bits 79–48,
  port in bits 95–80) and `Addresses.from_user` unpacks it again.
* `Meta`: per-packet facts the transmitter gathers before sending: payload
  checksum and length, and the destination MAC, IPv4 address and UDP port.
* `get_bits(value, high, low)` and `set_bits(value, high, low, bits)`: read
  and replace an inclusive bit range of an integer.

All fields are checked against their widths; a value that does not fit raises
`ValueError`.

`rmiiudp.checksums`:

* `CRC32`: the Ethernet frame check sequence, fed one byte at a time with
  `add`. `value` is the FCS with the byte sent first at the top; `is_good`
  tells whether a frame followed by its own FCS has been fed.
* `InternetChecksum`: the one's-complement sum of IPv4 and UDP, fed 16-bit
  words with `add` (another `InternetChecksum` may be added too) or single
  bytes with `add_half`. `accumulator` is the running sum, `value` its
  complement.

Receive stages:

* `rmiiudp.rx_stages`: `DataSpotter`, `DataBundler`, `AxisWordGenerator`.
* `rmiiudp.rx_filters`: `FCSValidator`, `DataGate`, and `StageResult`, the
  pair of optional output word and bad-frame flag that the later stages return.
* `rmiiudp.rx_ethernet`: `EthDataHandler`.
* `rmiiudp.rx_headers`: `IPPacketHandler`, `UDPPacketHandler`.

Transmit stages:

* `rmiiudp.tx_payload`: `PreambleWordGenerator`, `PayloadWordGenerator`,
  `FCSWordGenerator`, `UDPPacketWordGenerator`.
* `rmiiudp.tx_packets`: `IPPacketWordGenerator`, `ETHPacketWordGenerator`,
  `DataWordGenerator`.
* `rmiiudp.transmitter`: `DataInputAnalyzer`, `DataSender`, and `TxSample`,
  the `(txd, txen)` pair of one clock.

Each stage can be driven on its own, which is handy for studying or testing
one layer of the protocol.

## Usage

Sending one payload byte and capturing the transmit signals:

```python
from rmiiudp.types import Addresses, AxisWord
from rmiiudp.transmitter import EthernetTransmitter

local = Addresses(mac_addr=0x020000000001, ip_addr=0x0A000001, udp_port=0x1234)
remote = Addresses(mac_addr=0x020000000002, ip_addr=0x0A000002, udp_port=0x0035)

transmitter = EthernetTransmitter(local)
# Pairs of (clock index, word); the word's user field names the destination.
words = [(0, AxisWord(data=0xAA, last=True, user=remote.user))]
samples = transmitter.run(words, 400)   # one TxSample(txd, txen) per clock
```

Feeding the driven bit pairs to a receiver set up as the remote station:

```python
from rmiiudp.receiver import EthernetReceiver

receiver = EthernetReceiver(remote)
rxd = [sample.txd for sample in samples if sample.txen]
received = receiver.run(rxd, [1] * len(rxd))
```

`EthernetReceiver.run(rxd, crsdv, rxerr=None)` pads shorter signals with
zeros and, once the inputs end, keeps the line idle until the last frame has
been delivered. It returns every word released.

For finer control, call `step` once per clock:

* `EthernetReceiver.step(rxd, rxerr, crsdv)` returns the payload word released
  in that clock, or `None`. Payload words are held until their frame has been
  checked and then leave one per clock.
* `EthernetTransmitter.step(data_in=None)` offers an optional payload word and
  returns that clock's `TxSample`.

## Behaviour worth knowing

* The receiver drops a frame without releasing any of it when the CRC-32 is
  wrong, `rxerr` was raised during the frame, the destination MAC or IPv4
  address is not the local one, the EtherType is not IPv4, the IPv4 header
  carries options, the protocol is not UDP, the destination port does not
  match, or a non-zero UDP checksum does not add up. A UDP checksum of zero is
  accepted.
* The receiver takes only the low byte of the UDP length field into account.
* The transmitter pads payloads shorter than 18 bytes with zeros. Length
  fields are kept to 11 bits, so payloads are counted modulo 2048.
* After each frame the transmitter keeps `txen` low for 96 clocks before it
  may start the next one.

## What it does not do

This is a model of the data path only. It does not drive real hardware or
open network sockets, and it has no command-line tool. Apart from IPv4 and
UDP it handles no protocols: no ARP, ICMP, VLAN tags or IPv4 fragmentation.