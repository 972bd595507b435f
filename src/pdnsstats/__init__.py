"""pdnsstats: PowerDNS server and recursor statistics collector"""
