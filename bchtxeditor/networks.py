# bch-tx-editor - Bitcoin Cash transaction editor
# Copyright (C) 2019-2020 The ElectrumSV Developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.


# Network parameters. Each network is a class used as a namespace, as the values never change
# and the class itself is passed around as the network identity.
#
# The derivation and address helpers take the network as an explicit argument rather than
# consulting a global, so that decoding a transaction does not depend on ambient state.

from bitcoinx import Bitcoin, BitcoinRegtest, BitcoinTestnet


class BCHMainnet(object):
    NAME = 'mainnet'
    CASHADDR_PREFIX = "bitcoincash"
    COIN = Bitcoin


class BCHTestnet3(object):
    NAME = 'testnet3'
    CASHADDR_PREFIX = "bchtest"
    COIN = BitcoinTestnet


class BCHTestnet4(BCHTestnet3):
    NAME = 'testnet4'


class BCHScalenet(BCHTestnet3):
    NAME = 'scalenet'


class BCHChipnet(BCHTestnet3):
    NAME = 'chipnet'


class BCHRegtest(object):
    NAME = 'regtest'
    CASHADDR_PREFIX = "bchreg"
    COIN = BitcoinRegtest


NetworkType = type[BCHMainnet] | type[BCHTestnet3] | type[BCHRegtest]

NETWORKS: dict[str, NetworkType] = { network.NAME: network for network in (
    BCHMainnet, BCHTestnet3, BCHTestnet4, BCHScalenet, BCHChipnet, BCHRegtest) }

DEFAULT_NETWORK = BCHMainnet


def network_from_name(name: str) -> NetworkType:
    """
    Raises `ValueError` if the name is not a known network.
    """
    try:
        return NETWORKS[name.lower()]
    except KeyError:
        raise ValueError(f"unknown network '{name}', expected one of "
            f"{', '.join(sorted(NETWORKS))}") from None
