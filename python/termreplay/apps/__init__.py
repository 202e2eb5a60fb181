"""命令行入口: termreplay-record / termreplay-play"""
