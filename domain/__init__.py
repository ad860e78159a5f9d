"""领域模型：目录参考数据与订单。"""
