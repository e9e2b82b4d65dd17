"""地区缓存预热本地执行脚本"""

import argparse
import logging
from app.services.region_service import RegionClient, RegionService
from app.core.redis import redis_client

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def run_warm(dry_run: bool = False) -> int:
    """执行地区缓存预热
    
    Args:
        dry_run: 是否为试运行模式（只请求上游统计省份数量，不写缓存）
    """
    if dry_run:
        provinces = RegionClient().list_provinces()
        logger.info(f"试运行模式：上游共 {len(provinces)} 个省份")
        return len(provinces)

    service = RegionService(RegionClient(), redis_client)
    count = service.warm_cache()
    logger.info(f"预热完成：共 {count} 个省份")
    return count

def main():
    """主函数"""
    parser = argparse.ArgumentParser(description='地区参考数据缓存预热工具')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='试运行模式，只统计不写缓存'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='详细输出模式'
    )
    
    args = parser.parse_args()
    
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    
    try:
        result = run_warm(args.dry_run)
        if args.dry_run:
            print(f"📊 试运行结果：上游共 {result} 个省份")
        else:
            print(f"✅ 预热完成：处理了 {result} 个省份")
    except Exception as e:
        logger.error(f"预热执行失败: {str(e)}")
        print(f"❌ 执行失败: {str(e)}")
        return 1
    
    return 0

if __name__ == "__main__":
    exit(main())
