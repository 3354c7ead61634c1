#!/usr/bin/python

##############################################################################
#                                                                            #
#  Objective:                                                                #
#    Latency measurement campaigns built from trains of ICMP echo probes.    #
#                                                                            #
#  Features supported:                                                       #
#    - IPv4 and IPv6                                                         #
#    - raw ICMP sockets or unprivileged datagram ICMP sockets               #
#    - trains of probes with configurable intra/inter-train spacing          #
#    - uniform (gamma) or exponential (rate) spacing between trains          #
#    - payload size patterns                                                 #
#    - min/avg/max/mdev statistics and sequence/RTT export                   #
#                                                                            #
#  Modes of operation:                                                       #
#    - ping                                                                  #
#        one reply slot per cycle, run stops after <count> cycles            #
#    - capture                                                               #
#        trains of probes, every reply printed and exported                  #
#                                                                            #
#  Limitations:                                                              #
#    As there is no hardware based timestamping, latency values measured     #
#    by this tool are not very precise.                                      #
#                                                                            #
#  License:                                                                  #
#    Licensed under the BSD license                                          #
#    See LICENSE.md delivered with this project for more information.        #
#                                                                            #
##############################################################################

__version__ = "0.3.0"
